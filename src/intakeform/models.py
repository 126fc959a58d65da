from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class FormModel(Base):
    __tablename__ = "forms"

    id = Column(String, primary_key=True)
    # insertion order for list_forms
    seq = Column(Integer, index=True)
    name = Column(String)
    fields_json = Column(Text)
    created_at = Column(DateTime(timezone=True))


class SubmissionModel(Base):
    __tablename__ = "submissions"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    answers_json = Column(Text)
    photos_json = Column(Text)
    notes = Column(Text, default="")
    submitted_at = Column(DateTime(timezone=True), index=True)
