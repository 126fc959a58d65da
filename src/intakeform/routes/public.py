from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, Response

from intakeform.errors import NotFoundError

router = APIRouter()

ENTRY_TEMPLATE = "index.html"


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/uploads/{name}", tags=["public"])
async def download_upload(request: Request, name: str) -> FileResponse:
    blobs = request.app.state.blobs
    path = blobs.resolve(name)
    if path is None or not path.is_file():
        raise NotFoundError("File not found")
    return FileResponse(path)


def client_asset(client_dir: Path, full_path: str) -> Path | None:
    if not full_path or full_path == ENTRY_TEMPLATE:
        return None
    root = client_dir.resolve()
    candidate = (root / full_path).resolve()
    if root not in candidate.parents or not candidate.is_file():
        return None
    return candidate


@router.api_route(
    "/{full_path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    response_class=HTMLResponse,
    tags=["public"],
)
async def client_entry(request: Request, full_path: str) -> Response:
    """Serve client files, or the entry document for any other path."""
    settings = request.app.state.settings
    asset = client_asset(settings.client_dir, full_path)
    if asset is not None and request.method in {"GET", "HEAD"}:
        return FileResponse(asset)
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        ENTRY_TEMPLATE,
        {"path": "/" + full_path},
    )
