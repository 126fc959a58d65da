from __future__ import annotations

import csv
import io
import logging
from typing import Any

from intakeform.blobs import LocalBlobStore
from intakeform.errors import InvalidIdError, NotFoundError, ValidationError
from intakeform.forms import get_form
from intakeform.protocols import Storage
from intakeform.schema import parse_submission_data, validate_answers
from intakeform.utils import is_valid_id, new_ulid, now_utc, to_iso

logger = logging.getLogger(__name__)

EXPORT_DELIMITERS = {"csv": ",", "tsv": "\t"}


def create_submission(
    storage: Storage,
    blobs: LocalBlobStore,
    form_id: str,
    data_raw: Any,
    uploads: list[tuple[str, bytes]],
    max_bytes: int | None = None,
) -> dict[str, Any]:
    """Store a submission for ``form_id``.

    ``uploads`` holds ``(original filename, content)`` pairs. Files are written
    before the record; if the record write fails they stay on disk unreferenced.
    """
    answers, notes = parse_submission_data(data_raw)
    form = get_form(storage, form_id)

    if max_bytes is not None:
        too_large = [name for name, content in uploads if len(content) > max_bytes]
        if too_large:
            raise ValidationError(
                "File too large", [f"{name}: exceeds {max_bytes} bytes" for name in too_large]
            )
    validate_answers(form.get("fields", []), answers, len(uploads))

    photos = [blobs.save(name, content) for name, content in uploads]

    submission_id = new_ulid()
    storage.submissions.create_submission(
        {
            "id": submission_id,
            "form_id": form["id"],
            "answers": answers,
            "photos": photos,
            "notes": notes,
            "submitted_at": now_utc(),
        }
    )
    logger.info(
        "Created submission %s for form %s (%d photos)",
        submission_id,
        form["id"],
        len(photos),
    )
    return get_submission(storage, submission_id)


def list_submissions(storage: Storage, form_id: str | None = None) -> list[dict[str, Any]]:
    return storage.submissions.list_submissions(form_id or None)


def get_submission(storage: Storage, submission_id: str) -> dict[str, Any]:
    if not is_valid_id(submission_id):
        raise InvalidIdError("Submission not found")
    submission = storage.submissions.get_submission(submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


def update_notes(storage: Storage, submission_id: str, notes: Any) -> dict[str, Any]:
    if notes is None:
        notes = ""
    if not isinstance(notes, str):
        raise ValidationError("Failed to update notes", ["notes must be a string"])
    get_submission(storage, submission_id)
    try:
        return storage.submissions.update_submission(submission_id, {"notes": notes})
    except KeyError:
        raise NotFoundError("Submission not found")


def delete_submission(storage: Storage, blobs: LocalBlobStore, submission_id: str) -> None:
    submission = get_submission(storage, submission_id)
    photos = submission.get("photos", [])
    removed = blobs.delete_many(photos)
    storage.submissions.delete_submission(submission_id)
    logger.info(
        "Deleted submission %s (blobs=%d/%d)", submission_id, removed, len(photos)
    )


def _answer_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(_answer_text(item) for item in value)
    return str(value)


def export_submissions(storage: Storage, form_id: str, fmt: str = "csv") -> str:
    if fmt not in EXPORT_DELIMITERS:
        raise ValidationError("Unsupported export format", [f"format must be csv or tsv ({fmt})"])
    form = get_form(storage, form_id)
    labels = [
        field["label"] for field in form.get("fields", []) if field.get("type") != "file"
    ]
    submissions = storage.submissions.list_submissions(form_id)

    output = io.StringIO()
    writer = csv.writer(output, delimiter=EXPORT_DELIMITERS[fmt])
    writer.writerow(["submittedAt", *labels, "photos", "notes"])
    for item in submissions:
        answers = item.get("answers", {})
        writer.writerow(
            [
                to_iso(item["submitted_at"]),
                *(_answer_text(answers.get(label)) for label in labels),
                ", ".join(item.get("photos", [])),
                item.get("notes", ""),
            ]
        )
    return output.getvalue()
