"""Study note endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import Note, User
from studyplanner.notes import service
from studyplanner.notes.schemas import NoteCreate, NoteListResponse, NoteResponse, NoteUpdate
from studyplanner.pagination import page_count
from studyplanner.plans.service import get_plan

router = APIRouter(prefix="/api/v1/notes", tags=["Notes"])


async def _get_owned_note(db: AsyncSession, user: User, note_id: int) -> Note:
    note = await service.get_note(db, user.id, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.get("", response_model=NoteListResponse)
async def list_notes(
    subject: str | None = Query(None),
    tags: str | None = Query(None, description="Comma-separated tags"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteListResponse:
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    notes, total = await service.list_notes(
        db, user.id, subject=subject, tags=tag_list, search=search, page=page, per_page=limit
    )
    return NoteListResponse(
        notes=[NoteResponse.model_validate(n) for n in notes],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.post("", response_model=NoteResponse, status_code=201)
async def create_note(
    body: NoteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteResponse:
    if body.study_plan_id is not None and await get_plan(db, user.id, body.study_plan_id) is None:
        raise HTTPException(status_code=404, detail="Study plan not found")
    note = await service.create_note(db, user.id, body)
    await db.commit()
    return NoteResponse.model_validate(note)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteResponse:
    return NoteResponse.model_validate(await _get_owned_note(db, user, note_id))


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    body: NoteUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteResponse:
    note = await _get_owned_note(db, user, note_id)
    service.update_note(note, body)
    await db.commit()
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}")
async def delete_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    note = await _get_owned_note(db, user, note_id)
    await service.delete_note(db, note)
    await db.commit()
    return {"status": "deleted"}
