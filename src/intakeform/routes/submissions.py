from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from intakeform import submissions
from intakeform.errors import ValidationError
from intakeform.routes.api import read_json
from intakeform.schema import submission_output

router = APIRouter()


async def read_submission_body(request: Request) -> tuple[Any, list[tuple[str, bytes]]]:
    """Return the raw ``data`` value and ``(filename, content)`` pairs for ``photos``.

    Multipart is the normal path; a plain JSON body is accepted as the data
    object itself with no files.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        return await read_json(request), []

    form_data = await request.form()
    data_raw = form_data.get("data")
    if data_raw is not None and not isinstance(data_raw, str):
        raise ValidationError("Invalid submission data", ["data must be a JSON string"])

    uploads: list[tuple[str, bytes]] = []
    for upload in form_data.getlist("photos"):
        if upload and getattr(upload, "filename", ""):
            uploads.append((upload.filename, await upload.read()))
    return data_raw, uploads


@router.post("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_create_submission(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    blobs = request.app.state.blobs
    settings = request.app.state.settings
    data_raw, uploads = await read_submission_body(request)
    submission = submissions.create_submission(
        storage,
        blobs,
        form_id,
        data_raw,
        uploads,
        max_bytes=settings.upload_max_bytes,
    )
    return JSONResponse(submission_output(submission), status_code=201)


@router.get("/api/submissions", tags=["api/submissions"])
async def api_list_submissions(request: Request) -> JSONResponse:
    storage = request.app.state.storage
    form_id = request.query_params.get("form") or None
    items = submissions.list_submissions(storage, form_id)
    return JSONResponse([submission_output(item) for item in items])


@router.get("/api/submissions/{submission_id}", tags=["api/submissions"])
async def api_get_submission(request: Request, submission_id: str) -> JSONResponse:
    storage = request.app.state.storage
    submission = submissions.get_submission(storage, submission_id)
    return JSONResponse(submission_output(submission))


@router.put("/api/submissions/{submission_id}/notes", tags=["api/submissions"])
async def api_update_notes(request: Request, submission_id: str) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json(request)
    if not isinstance(payload, dict):
        raise ValidationError("Failed to update notes", ["body must be an object"])
    updated = submissions.update_notes(storage, submission_id, payload.get("notes"))
    return JSONResponse(submission_output(updated))


@router.delete("/api/submissions/{submission_id}", tags=["api/submissions"])
async def api_delete_submission(request: Request, submission_id: str) -> JSONResponse:
    storage = request.app.state.storage
    blobs = request.app.state.blobs
    submissions.delete_submission(storage, blobs, submission_id)
    return JSONResponse({"message": "Submission deleted"})
