from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ConfiguredBaseModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ErrorPayload(ConfiguredBaseModel):
    """Wire form of a structured error.

    The causal chain is process-local and has no field here.
    """

    typecode: str
    code: str
    message: str = ""
    params: dict[str, str] = Field(default_factory=dict)
    is_retryable: bool | None = None
