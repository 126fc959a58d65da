from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from intakeform import forms
from intakeform.errors import ValidationError
from intakeform.schema import form_output, form_summary
from intakeform.submissions import export_submissions

router = APIRouter()


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Invalid JSON body") from exc


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(request: Request) -> JSONResponse:
    storage = request.app.state.storage
    return JSONResponse([form_summary(form) for form in forms.list_forms(storage)])


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    return JSONResponse(form_output(forms.get_form(storage, form_id)))


@router.post("/api/forms", tags=["api/forms"])
async def api_create_form(request: Request) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json(request)
    form = forms.create_form(storage, payload)
    return JSONResponse(form_output(form), status_code=201)


@router.put("/api/forms/{form_id}", tags=["api/forms"])
async def api_update_form(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json(request)
    form = forms.update_form(storage, form_id, payload)
    return JSONResponse(form_output(form))


@router.delete("/api/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    blobs = request.app.state.blobs
    forms.delete_form(storage, blobs, form_id)
    return JSONResponse({"message": "Form and related submissions deleted"})


@router.get("/api/forms/{form_id}/export", tags=["api/forms"])
async def api_export_submissions(request: Request, form_id: str) -> PlainTextResponse:
    storage = request.app.state.storage
    fmt = request.query_params.get("format", "csv")
    content = export_submissions(storage, form_id, fmt)
    content_type = "text/csv" if fmt == "csv" else "text/tab-separated-values"
    return PlainTextResponse(
        content,
        media_type=content_type,
        headers={"Content-Disposition": f"attachment; filename=submissions.{fmt}"},
    )
