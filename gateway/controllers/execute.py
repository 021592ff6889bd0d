import logging
from typing import Any

from fastapi import APIRouter, Request

from gateway.archive import hash_caller_address
from gateway.dependencies import Allocator, AppSettings, Sandbox
from gateway.models.execute import ExecuteRequest, ExecuteResponse

logger = logging.getLogger("gateway.execute")
router = APIRouter()


def _caller_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/execute", response_model=ExecuteResponse, response_model_exclude_none=True)
def execute_code(
    req: ExecuteRequest,
    request: Request,
    allocator: Allocator,
    sandbox: Sandbox,
    settings: AppSettings,
) -> dict[str, Any]:
    caller_hash = hash_caller_address(_caller_address(request), settings.archive.caller_hash_salt)

    run = allocator.archive(req.code, req.client_seed, caller_hash, language=req.language)
    logger.debug("Forwarding %s to sandbox", run.name)

    return sandbox.execute(req.code)
