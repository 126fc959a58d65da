from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock
from tinydb import Query, TinyDB

from intakeform.errors import StoreError
from intakeform.utils import parse_dt, to_iso

logger = logging.getLogger(__name__)


class JSONRepoBase:
    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterator[TinyDB]:
        try:
            with self._lock:
                db = TinyDB(self._path)
                try:
                    yield db
                finally:
                    db.close()
        except (OSError, ValueError) as exc:
            logger.error("JSON store operation failed on %s: %s", self._path, exc)
            raise StoreError("Database operation failed") from exc


class JSONFormRepo(JSONRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("forms").all()
        # TinyDB returns documents in insertion (doc_id) order
        return [self._from_record(item) for item in items]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("forms").get(Query().id == form_id)
        return self._from_record(item) if item else None

    def create_form(self, form: dict[str, Any]) -> None:
        record = self._to_record(form)
        with self._db() as db:
            db.table("forms").insert(record)

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._db() as db:
            table = db.table("forms")
            item = table.get(Query().id == form_id)
            if not item:
                raise KeyError(form_id)
            item = dict(item)
            for key in ("name", "fields"):
                if key in updates:
                    item[key] = updates[key]
            table.update(item, Query().id == form_id)
        return self._from_record(item)

    def delete_form(self, form_id: str) -> bool:
        with self._db() as db:
            removed = db.table("forms").remove(Query().id == form_id)
        return bool(removed)

    @staticmethod
    def _to_record(form: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": form["id"],
            "name": form["name"],
            "fields": list(form["fields"]),
            "created_at": to_iso(form["created_at"]),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "name": record.get("name", ""),
            "fields": record.get("fields", []),
            "created_at": parse_dt(record.get("created_at")),
        }


class JSONSubmissionRepo(JSONRepoBase):
    def list_submissions(self, form_id: str | None = None) -> list[dict[str, Any]]:
        with self._db() as db:
            table = db.table("submissions")
            if form_id is None:
                items = table.all()
            else:
                items = table.search(Query().form_id == form_id)
        submissions = [self._from_record(item) for item in items]
        return sorted(
            submissions, key=lambda x: (x["submitted_at"], x["id"]), reverse=True
        )

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("submissions").get(Query().id == submission_id)
        return self._from_record(item) if item else None

    def create_submission(self, submission: dict[str, Any]) -> None:
        record = self._to_record(submission)
        with self._db() as db:
            db.table("submissions").insert(record)

    def update_submission(
        self, submission_id: str, updates: dict[str, Any]
    ) -> dict[str, Any]:
        with self._db() as db:
            table = db.table("submissions")
            item = table.get(Query().id == submission_id)
            if not item:
                raise KeyError(submission_id)
            item = dict(item)
            if "notes" in updates:
                item["notes"] = updates["notes"]
            table.update(item, Query().id == submission_id)
        return self._from_record(item)

    def delete_submission(self, submission_id: str) -> bool:
        with self._db() as db:
            removed = db.table("submissions").remove(Query().id == submission_id)
        return bool(removed)

    def delete_submissions_for_form(self, form_id: str) -> int:
        with self._db() as db:
            removed = db.table("submissions").remove(Query().form_id == form_id)
        return len(removed)

    @staticmethod
    def _to_record(submission: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": submission["id"],
            "form_id": submission["form_id"],
            "answers": submission["answers"],
            "photos": list(submission["photos"]),
            "notes": submission["notes"],
            "submitted_at": to_iso(submission["submitted_at"]),
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "answers": record.get("answers", {}),
            "photos": record.get("photos", []),
            "notes": record.get("notes", ""),
            "submitted_at": parse_dt(record.get("submitted_at")),
        }


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self._lock = FileLock(f"{path}.lock")
        self.forms = JSONFormRepo(path, self._lock)
        self.submissions = JSONSubmissionRepo(path, self._lock)

    def close(self) -> None:
        return None
