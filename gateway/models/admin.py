"""Pydantic models for the admin API."""

from pydantic import BaseModel, ConfigDict, Field


class AuthRequest(BaseModel):
    password: str


class AuthResponse(BaseModel):
    success: bool
    token: str | None = None
    error: str | None = None


class VerifyResponse(BaseModel):
    valid: bool


class RunInfo(BaseModel):
    """One archived artifact as listed by ``GET /runs``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int
    mod_time: str = Field(alias="modTime")


class DeleteRequest(BaseModel):
    files: list[str]


class DeleteError(BaseModel):
    name: str
    error: str


class DeleteResponse(BaseModel):
    deleted: list[str]
    errors: list[DeleteError]
