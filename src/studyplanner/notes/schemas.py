"""Request/response schemas for study notes."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

NoteKind = Literal["note", "summary", "flashcard", "resource"]


class AttachmentIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    kind: str = "link"


class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    tags: list[str] = []
    kind: NoteKind = "note"
    study_plan_id: int | None = None
    is_public: bool = False
    attachments: list[AttachmentIn] = []


class NoteUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    subject: str | None = Field(None, min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    tags: list[str] | None = None
    kind: NoteKind | None = None
    is_public: bool | None = None
    attachments: list[AttachmentIn] | None = None


class NoteResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    study_plan_id: int | None = None
    title: str
    content: str
    subject: str
    topic: str | None = None
    tags: list[str]
    kind: str
    is_public: bool
    attachments: list[dict]
    created_at: datetime
    updated_at: datetime


class NoteListResponse(BaseModel):
    notes: list[NoteResponse]
    total: int
    page: int
    pages: int
