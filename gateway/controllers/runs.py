from fastapi import APIRouter
from fastapi.responses import FileResponse

from gateway.dependencies import AdminToken, Artifacts
from gateway.models.admin import DeleteRequest, DeleteResponse, RunInfo

router = APIRouter(prefix="/runs", tags=["runs"])


@router.get("", response_model=list[RunInfo], response_model_by_alias=True)
def list_runs(_token: AdminToken, artifacts: Artifacts):
    return artifacts.list_runs()


@router.post("/delete", response_model=DeleteResponse)
def delete_runs(req: DeleteRequest, _token: AdminToken, artifacts: Artifacts) -> DeleteResponse:
    deleted, errors = artifacts.delete_many(req.files)
    return DeleteResponse(deleted=deleted, errors=errors)


# ``path`` so that names with separators reach the handler and get a 400, not a routing 404.
@router.get("/{name:path}")
def get_run(name: str, _token: AdminToken, artifacts: Artifacts) -> FileResponse:
    return FileResponse(artifacts.path_for(name), media_type="text/plain; charset=utf-8")
