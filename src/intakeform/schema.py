from __future__ import annotations

from typing import Any

import orjson
from jsonschema import Draft7Validator

from intakeform.config import ALLOWED_TYPES
from intakeform.errors import ValidationError
from intakeform.utils import to_iso

SUBMISSION_DATA_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "answers": {"type": ["object", "null"]},
        "_notes": {"type": ["string", "null"]},
    },
}


def parse_fields(raw_fields: Any) -> tuple[list[dict[str, Any]], list[str]]:
    """Normalize field definitions, keeping their order and any duplicate labels."""
    if not isinstance(raw_fields, list):
        return [], ["fields must be a list"]

    errors: list[str] = []
    fields: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_fields, start=1):
        loc = f"field {index}"
        if not isinstance(raw, dict):
            errors.append(f"{loc}: must be an object")
            continue
        label = raw.get("label")
        if not isinstance(label, str) or not label.strip():
            errors.append(f"{loc}: label is required")
            label = ""
        field_type = raw.get("type")
        if field_type not in ALLOWED_TYPES:
            errors.append(f"{loc}: invalid type ({field_type})")
        required = raw.get("required", False)
        if required is None:
            required = False
        if not isinstance(required, bool):
            errors.append(f"{loc}: required must be a boolean")
        fields.append(
            {
                "label": label.strip(),
                "type": field_type,
                "required": bool(required),
            }
        )
    return fields, errors


def validate_form_payload(payload: Any) -> tuple[str, list[dict[str, Any]]]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid form data", ["body must be an object"])
    errors: list[str] = []
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("name is required")
        name = ""
    fields, field_errors = parse_fields(payload.get("fields", []))
    errors.extend(field_errors)
    if errors:
        raise ValidationError("Invalid form data", errors)
    return name.strip(), fields


def parse_submission_data(data_raw: Any) -> tuple[dict[str, Any], str]:
    """Decode the ``data`` part into ``(answers, notes)``.

    Accepts the raw JSON text sent in a multipart body or an already decoded
    JSON body.
    """
    if data_raw is None or (isinstance(data_raw, (str, bytes)) and not data_raw.strip()):
        return {}, ""
    if isinstance(data_raw, (str, bytes)):
        try:
            parsed = orjson.loads(data_raw)
        except orjson.JSONDecodeError as exc:
            raise ValidationError("Invalid submission data", ["data is not valid JSON"]) from exc
    else:
        parsed = data_raw

    errors = [
        error.message
        for error in Draft7Validator(SUBMISSION_DATA_SCHEMA).iter_errors(parsed)
    ]
    if errors:
        raise ValidationError("Invalid submission data", errors)
    return parsed.get("answers") or {}, parsed.get("_notes") or ""


def build_answers_schema(fields: list[dict[str, Any]]) -> dict[str, Any]:
    """JSON Schema for an answers map, derived from the form's current fields.

    Labels the form no longer has are allowed through untouched.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field in fields:
        label = field["label"]
        field_type = field["type"]
        if field_type == "file":
            continue
        if field_type == "checkbox":
            prop: dict[str, Any] = {"type": "boolean"}
            if field.get("required"):
                prop["const"] = True
        elif field_type == "number":
            prop = {"type": ["string", "number"]}
            if field.get("required"):
                prop["minLength"] = 1
        else:
            prop = {"type": "string"}
            if field.get("required"):
                prop["minLength"] = 1
        properties[label] = prop
        if field.get("required"):
            required.append(label)
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": True,
    }
    if required:
        schema["required"] = sorted(set(required), key=required.index)
    return schema


def validate_answers(
    fields: list[dict[str, Any]], answers: dict[str, Any], photo_count: int
) -> None:
    validator = Draft7Validator(build_answers_schema(fields))
    errors = sorted(validator.iter_errors(answers), key=lambda err: list(err.path))
    messages = [_format_error(error) for error in errors]
    for field in fields:
        if field["type"] == "file" and field.get("required") and photo_count == 0:
            messages.append(f"{field['label']}: a file is required")
    if messages:
        raise ValidationError("Invalid submission data", messages)


def _format_error(error: Any) -> str:
    if error.path:
        return f"{error.path[0]}: {error.message}"
    return error.message


def form_summary(form: dict[str, Any]) -> dict[str, Any]:
    return {"id": form["id"], "name": form["name"]}


def form_output(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": form["id"],
        "name": form["name"],
        "fields": [
            {
                "label": field.get("label", ""),
                "type": field.get("type", "text"),
                "required": bool(field.get("required", False)),
            }
            for field in form.get("fields", [])
        ],
        "createdAt": to_iso(form["created_at"]),
    }


def submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "form": submission["form_id"],
        "answers": submission.get("answers", {}),
        "photos": list(submission.get("photos", [])),
        "notes": submission.get("notes", ""),
        "submittedAt": to_iso(submission["submitted_at"]),
    }
