from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import FrozenInstanceError, dataclass, field
from types import MappingProxyType
from typing import Any

from service_errors.domain.codes import (
    RETRYABLE_CATEGORIES,
    ErrorCategory,
    category_value,
)
from service_errors.domain.models import ErrorPayload


@dataclass(frozen=True, slots=True, eq=False)
class StructuredError(Exception):
    """Error value shared by every layer of a service.

    Attributes:
        category: Top-level classification, e.g. ``not_found``.
        code: Dotted code, the category optionally followed by a sub-code.
        message: Human-readable description.
        context: String key/value diagnostics, merged across wraps.
        is_retryable: Explicit retryability, ``None`` when never set.
        cause: Error this one was built from. Process-local, never serialized.
    """

    category: str
    code: str
    message: str = ""
    context: Mapping[str, str] = field(default_factory=dict)
    is_retryable: bool | None = None
    cause: BaseException | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        context = MappingProxyType(dict(self.context or {}))
        object.__setattr__(self, "context", context)

    def __reduce__(self) -> tuple[Any, ...]:
        fields = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        fields["context"] = dict(self.context)
        return (_rebuild, (type(self), fields), self.__dict__ or None)

    def __setstate__(self, state: Mapping[str, Any] | None) -> None:
        # Only instance extras such as __notes__ travel here.
        for name, value in (state or {}).items():
            setattr(self, name, value)

    def __str__(self) -> str:
        if self.cause is None:
            if not self.message:
                return self.code
            if not self.code:
                return self.message
            return f"{self.code}: {self.message}"

        # Only the outermost code is printed, each link adds its message.
        parts = [self.code]
        link: BaseException | None = self
        while link is not None:
            if isinstance(link, StructuredError):
                parts.append(link.message)
                link = link.cause
            else:
                parts.append(str(link))
                link = None
        return ": ".join(parts)

    @property
    def retryable(self) -> bool:
        """Whether the failed action may be retried."""
        if self.is_retryable is not None:
            return self.is_retryable
        return _derive_retryable(self.code)

    def unwrap(self) -> BaseException | None:
        return self.cause

    def log_metadata(self) -> dict[str, str]:
        return dict(self.context)

    def with_context(self, context: Mapping[str, str] | None) -> StructuredError:
        """Return a copy with *context* merged in, incoming keys win."""
        merged = {**self.context, **(context or {})}
        return dataclasses.replace(self, context=merged)

    def matches(self, match: str) -> bool:
        """Check whether the rendered error contains *match*.

        Works on dotted codes (``bad_request.missing_param``) as well as on
        any part of the message chain.
        """
        return match in str(self)

    def prefix_matches(self, *prefix_parts: str) -> bool:
        """Check whether ``code`` starts with the dot-joined *prefix_parts*.

        ``err.prefix_matches("bad_request", "missing_param")`` is the same as
        ``err.prefix_matches("bad_request.missing_param")``.
        """
        prefix = ".".join(category_value(p) for p in prefix_parts)
        return self.code.startswith(prefix)

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            typecode=self.category,
            code=self.code,
            message=self.message,
            params=dict(self.context),
            is_retryable=self.is_retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_payload().model_dump()

    @classmethod
    def from_payload(cls, payload: ErrorPayload | Mapping[str, Any]) -> StructuredError:
        if not isinstance(payload, ErrorPayload):
            payload = ErrorPayload.model_validate(payload)
        return cls(
            category=payload.typecode,
            code=payload.code,
            message=payload.message,
            context=payload.params,
            is_retryable=payload.is_retryable,
        )


def _rebuild(cls: type[StructuredError], fields: dict[str, Any]) -> StructuredError:
    return cls(**fields)


# Fields stay frozen; dunders are left to the interpreter (__notes__, __cause__).
def _setattr(self: StructuredError, name: str, value: Any) -> None:
    if name.startswith("__") and name.endswith("__"):
        object.__setattr__(self, name, value)
        return
    raise FrozenInstanceError(f"cannot assign to field {name!r}")


def _delattr(self: StructuredError, name: str) -> None:
    if name.startswith("__") and name.endswith("__"):
        object.__delattr__(self, name)
        return
    raise FrozenInstanceError(f"cannot delete field {name!r}")


StructuredError.__setattr__ = _setattr  # type: ignore[method-assign]
StructuredError.__delattr__ = _delattr  # type: ignore[method-assign]


def _derive_retryable(code: str) -> bool:
    return any(code.startswith(c.value) for c in RETRYABLE_CATEGORIES)


def error_code(category: ErrorCategory | str, sub_code: str = "") -> str:
    """Join *category* and *sub_code* into a dotted code."""
    prefix = category_value(category)
    if not sub_code:
        return prefix
    if not prefix:
        return sub_code
    return f"{prefix}.{sub_code}"


def error_factory(
    category: ErrorCategory | str,
    code: str,
    message: str,
    context: Mapping[str, str] | None,
) -> StructuredError:
    is_retryable: bool | None = None
    if code:
        # Stored rather than recomputed, so it travels with wrapped errors.
        is_retryable = _derive_retryable(code)
    return StructuredError(
        category=category_value(category) or ErrorCategory.UNKNOWN.value,
        code=code or ErrorCategory.UNKNOWN.value,
        message=message,
        context=context or {},
        is_retryable=is_retryable,
    )


def new(
    category: ErrorCategory | str,
    sub_code: str = "",
    message: str = "",
    context: Mapping[str, str] | None = None,
) -> StructuredError:
    """Create an error with a caller-chosen category.

    Use the shorthand constructors below for the standard categories.
    """
    return error_factory(category, error_code(category, sub_code), message, context)


def internal_service(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """Something went wrong and little else is known about it.

    Most internal service errors come from wrapping a foreign exception.
    """
    return new(ErrorCategory.INTERNAL_SERVICE, sub_code, message, context)


def bad_request(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """The client sent an invalid request. Not retryable as-is."""
    return new(ErrorCategory.BAD_REQUEST, sub_code, message, context)


def bad_response(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """A handler failed to produce a valid response."""
    return new(ErrorCategory.BAD_RESPONSE, sub_code, message, context)


def timeout(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    return new(ErrorCategory.TIMEOUT, sub_code, message, context)


def not_found(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """A resource cannot be found.

    Sometimes an empty collection describes the situation better.
    """
    return new(ErrorCategory.NOT_FOUND, sub_code, message, context)


def forbidden(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """The current credentials do not permit this action."""
    return new(ErrorCategory.FORBIDDEN, sub_code, message, context)


def unauthorized(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """Authentication is required and has failed or was not provided."""
    return new(ErrorCategory.UNAUTHORIZED, sub_code, message, context)


def precondition_failed(
    sub_code: str = "", message: str = "", context: Mapping[str, str] | None = None
) -> StructuredError:
    """A condition given in the request evaluated to false on the server."""
    return new(ErrorCategory.PRECONDITION_FAILED, sub_code, message, context)
