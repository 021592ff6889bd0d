from typing import Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, str]:
    sandbox_status = "unknown"
    resources = getattr(request.app.state, "resources", None)
    client = resources.sandbox_client if resources else None
    if client is not None:
        sandbox_status = "healthy" if client.is_available() else "unhealthy"

    return {"status": "ok", "sandbox": sandbox_status}
