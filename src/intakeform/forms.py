from __future__ import annotations

import logging
from typing import Any

from intakeform.blobs import LocalBlobStore
from intakeform.errors import InvalidIdError, NotFoundError
from intakeform.protocols import Storage
from intakeform.schema import validate_form_payload
from intakeform.utils import is_valid_id, new_ulid, now_utc

logger = logging.getLogger(__name__)


def list_forms(storage: Storage) -> list[dict[str, Any]]:
    return storage.forms.list_forms()


def get_form(storage: Storage, form_id: str) -> dict[str, Any]:
    if not is_valid_id(form_id):
        raise InvalidIdError("Form not found")
    form = storage.forms.get_form(form_id)
    if not form:
        raise NotFoundError("Form not found")
    return form


def create_form(storage: Storage, payload: Any) -> dict[str, Any]:
    name, fields = validate_form_payload(payload)
    form_id = new_ulid()
    storage.forms.create_form(
        {
            "id": form_id,
            "name": name,
            "fields": fields,
            "created_at": now_utc(),
        }
    )
    logger.info("Created form %s (%d fields)", form_id, len(fields))
    return get_form(storage, form_id)


def update_form(storage: Storage, form_id: str, payload: Any) -> dict[str, Any]:
    get_form(storage, form_id)
    name, fields = validate_form_payload(payload)
    try:
        updated = storage.forms.update_form(form_id, {"name": name, "fields": fields})
    except KeyError:
        raise NotFoundError("Form not found")
    logger.info("Updated form %s", form_id)
    return updated


def delete_form(storage: Storage, blobs: LocalBlobStore, form_id: str) -> None:
    """Delete a form with its submissions and their uploaded files.

    Runs in order: collect the form's submissions, delete their blobs (each
    failure is logged and skipped), bulk-delete the submission records, then
    delete the form record. Nothing is atomic; a crash part way leaves the
    remaining records in place. Deleting an unknown id is a no-op.
    """
    if not is_valid_id(form_id):
        logger.info("Delete of malformed form id %r ignored", form_id)
        return

    submissions = storage.submissions.list_submissions(form_id)
    photo_paths = [path for item in submissions for path in item.get("photos", [])]
    removed_blobs = blobs.delete_many(photo_paths)

    removed_submissions = storage.submissions.delete_submissions_for_form(form_id)
    existed = storage.forms.delete_form(form_id)
    logger.info(
        "Deleted form %s (existed=%s, submissions=%d, blobs=%d/%d)",
        form_id,
        existed,
        removed_submissions,
        removed_blobs,
        len(photo_paths),
    )
