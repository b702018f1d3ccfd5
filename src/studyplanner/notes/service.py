"""Study note storage and search."""

from __future__ import annotations

from sqlalchemy import Text, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.clock import utcnow
from studyplanner.db.models import Note
from studyplanner.notes.schemas import NoteCreate, NoteUpdate
from studyplanner.pagination import paginate


async def create_note(db: AsyncSession, user_id: int, data: NoteCreate) -> Note:
    now = utcnow()
    note = Note(
        user_id=user_id,
        study_plan_id=data.study_plan_id,
        title=data.title,
        content=data.content,
        subject=data.subject,
        topic=data.topic,
        tags=list(data.tags),
        kind=data.kind,
        is_public=data.is_public,
        attachments=[a.model_dump() for a in data.attachments],
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    await db.flush()
    return note


async def get_note(db: AsyncSession, user_id: int, note_id: int) -> Note | None:
    result = await db.execute(select(Note).where(Note.id == note_id, Note.user_id == user_id))
    return result.scalar_one_or_none()


async def list_notes(
    db: AsyncSession,
    user_id: int,
    *,
    subject: str | None = None,
    tags: list[str] | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Note], int]:
    """Notes matching every given filter, most recently updated first.

    ``tags`` matches notes carrying any of the tags; ``search`` looks in the
    title and the content.
    """
    query = select(Note).where(Note.user_id == user_id)
    if subject:
        query = query.where(Note.subject.ilike(f"%{subject}%"))
    if tags:
        # Tags are a JSON array; match the quoted element in its text form.
        query = query.where(or_(*(cast(Note.tags, Text).like(f'%"{tag}"%') for tag in tags)))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Note.title.ilike(pattern), Note.content.ilike(pattern)))
    query = query.order_by(Note.updated_at.desc(), Note.id.desc())
    return await paginate(db, query, page, per_page)


def update_note(note: Note, data: NoteUpdate) -> Note:
    fields = data.model_dump(exclude_unset=True)
    for name, value in fields.items():
        if value is not None:
            setattr(note, name, value)
    note.updated_at = utcnow()
    return note


async def delete_note(db: AsyncSession, note: Note) -> None:
    await db.delete(note)
    await db.flush()
