import hashlib
import hmac
import logging
from typing import Callable

from fastapi import APIRouter, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from gateway.dependencies import AppSettings, Sessions, extract_bearer_token
from gateway.models.admin import AuthRequest, AuthResponse, VerifyResponse

logger = logging.getLogger("gateway.admin")


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def _auth_failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=AuthResponse(success=False, error=error).model_dump(exclude_none=True),
    )


class AdminRoute(APIRoute):
    """Admin routes answer bad bodies in their own ``{success, error}`` shape."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def admin_route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError:
                logger.warning("Admin request rejected: malformed body (path=%s)", request.url.path)
                return _auth_failure(400, "Invalid request")

        return admin_route_handler


router = APIRouter(prefix="/admin", tags=["admin"], route_class=AdminRoute)


@router.post("/auth", response_model=AuthResponse, response_model_exclude_none=True)
def admin_auth(req: AuthRequest, sessions: Sessions, settings: AppSettings):
    expected = settings.admin.password_hash
    if not expected:
        logger.error("Admin login attempted but ADMIN_PASSWORD_HASH is not configured")
        return _auth_failure(500, "Admin password not configured")

    if not hmac.compare_digest(_hash_password(req.password), expected):
        logger.warning("Admin login rejected: invalid password")
        return _auth_failure(401, "Invalid password")

    return AuthResponse(success=True, token=sessions.issue())


@router.get("/verify", response_model=VerifyResponse)
def admin_verify(sessions: Sessions, authorization: str | None = Header(None)):
    token = extract_bearer_token(authorization)
    if token is None or not sessions.validate(token):
        return JSONResponse(status_code=401, content={"valid": False})
    return VerifyResponse(valid=True)
