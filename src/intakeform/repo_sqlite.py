from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from intakeform.errors import StoreError
from intakeform.models import Base, FormModel, SubmissionModel
from intakeform.utils import dumps_json, loads_json, parse_dt

logger = logging.getLogger(__name__)


class SQLiteRepoBase:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._Session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("SQLite store operation failed: %s", exc)
            raise StoreError("Database operation failed") from exc


class SQLiteFormRepo(SQLiteRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._session() as session:
            rows = session.scalars(select(FormModel).order_by(FormModel.seq)).all()
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._session() as session:
            row = session.get(FormModel, form_id)
            return self._to_dict(row) if row else None

    def create_form(self, form: dict[str, Any]) -> None:
        with self._session() as session:
            last_seq = session.scalar(select(func.max(FormModel.seq))) or 0
            row = FormModel(
                id=form["id"],
                seq=last_seq + 1,
                name=form["name"],
                fields_json=dumps_json(form["fields"]),
                created_at=form["created_at"],
            )
            session.add(row)
            session.commit()

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise KeyError(form_id)
            if "name" in updates:
                row.name = updates["name"]
            if "fields" in updates:
                row.fields_json = dumps_json(updates["fields"])
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> bool:
        with self._session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _to_dict(row: FormModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "fields": loads_json(row.fields_json) or [],
            "created_at": parse_dt(row.created_at),
        }


class SQLiteSubmissionRepo(SQLiteRepoBase):
    def list_submissions(self, form_id: str | None = None) -> list[dict[str, Any]]:
        with self._session() as session:
            query = select(SubmissionModel)
            if form_id is not None:
                query = query.where(SubmissionModel.form_id == form_id)
            query = query.order_by(
                SubmissionModel.submitted_at.desc(), SubmissionModel.id.desc()
            )
            rows = session.scalars(query).all()
            return [self._to_dict(row) for row in rows]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._session() as session:
            row = session.get(SubmissionModel, submission_id)
            return self._to_dict(row) if row else None

    def create_submission(self, submission: dict[str, Any]) -> None:
        with self._session() as session:
            row = SubmissionModel(
                id=submission["id"],
                form_id=submission["form_id"],
                answers_json=dumps_json(submission["answers"]),
                photos_json=dumps_json(submission["photos"]),
                notes=submission["notes"],
                submitted_at=submission["submitted_at"],
            )
            session.add(row)
            session.commit()

    def update_submission(
        self, submission_id: str, updates: dict[str, Any]
    ) -> dict[str, Any]:
        with self._session() as session:
            row = session.get(SubmissionModel, submission_id)
            if not row:
                raise KeyError(submission_id)
            if "notes" in updates:
                row.notes = updates["notes"]
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_submission(self, submission_id: str) -> bool:
        with self._session() as session:
            row = session.get(SubmissionModel, submission_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def delete_submissions_for_form(self, form_id: str) -> int:
        with self._session() as session:
            result = session.execute(
                delete(SubmissionModel).where(SubmissionModel.form_id == form_id)
            )
            session.commit()
            return result.rowcount or 0

    @staticmethod
    def _to_dict(row: SubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "answers": loads_json(row.answers_json) or {},
            "photos": loads_json(row.photos_json) or [],
            "notes": row.notes or "",
            "submitted_at": parse_dt(row.submitted_at),
        }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(
            f"sqlite:///{db_path}",
            connect_args={"check_same_thread": False},
        )
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError("Could not initialize the database") from exc
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)

    def close(self) -> None:
        self._engine.dispose()
