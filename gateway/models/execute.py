"""Pydantic models for the code execution API."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ExecuteRequest(BaseModel):
    """Body of ``POST /execute``."""

    model_config = ConfigDict(populate_by_name=True)

    code: str
    language: str | None = None
    client_seed: str = Field(
        default="",
        validation_alias=AliasChoices("clientSeed", "clientId", "client_seed"),
    )

    @field_validator("code", "language", "client_seed")
    @classmethod
    def validate_encodable(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                v.encode("utf-8")
            except UnicodeEncodeError:
                raise ValueError("must be valid UTF-8 text") from None
        return v

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("code must not be empty")
        return v


class OutputItem(BaseModel):
    type: str
    text: str


class ExecuteResponse(BaseModel):
    """Sandbox result relayed to the client."""

    success: bool
    output: list[OutputItem]
    error: str | None = None
