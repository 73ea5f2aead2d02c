"""
notes/store.py -- SQLAlchemy Core persistence layer for notes.

Pattern: Repository + Data Mapper (same as auth/store.py).
NoteStore is the repository; _row_to_note is the mapper.

Security: all queries use bound parameters. Sort columns come from a fixed
whitelist, never from raw user input.

Usage:
    store = NoteStore(engine)
    note = store.create_note(Note(title="t", content="c", created_by=1))
    store.list_notes(search="groceries", active=True, sort_field="title", sort_order="desc")
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.engine import Engine

from core.database import notes as _notes
from notes.models import Note

# Columns the admin listing may sort by. Anything else falls back to title.
_SORT_COLUMNS = {
    "title": _notes.c.title,
    "content": _notes.c.content,
    "created_on": _notes.c.created_on,
    "updated_on": _notes.c.updated_on,
}

# Fields an owner may change through update_note().
_MUTABLE_FIELDS = {"title", "content", "image_url", "active"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _like_pattern(term: str) -> str:
    """Wrap term in % wildcards, escaping LIKE metacharacters it contains."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class NoteStore:
    """Repository for Note entities. Shares the Engine with UserStore."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_note(self, note: Note) -> Note:
        """Insert a note and return it with id and timestamps filled in."""
        now = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(
                _notes.insert().values(
                    title=note.title,
                    content=note.content,
                    image_url=note.image_url,
                    active=note.active,
                    created_by=note.created_by,
                    created_on=now,
                    updated_on=now,
                )
            )
            note_id = result.inserted_primary_key[0]
            row = conn.execute(_notes.select().where(_notes.c.id == note_id)).fetchone()
        return _row_to_note(row)

    def get_note(self, note_id: int) -> Optional[Note]:
        with self.engine.connect() as conn:
            row = conn.execute(_notes.select().where(_notes.c.id == note_id)).fetchone()
        return _row_to_note(row) if row is not None else None

    def list_user_notes(self, user_id: int) -> list[Note]:
        """Return every note owned by user_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _notes.select().where(_notes.c.created_by == user_id).order_by(_notes.c.id)
            ).fetchall()
        return [_row_to_note(r) for r in rows]

    def list_notes(
        self,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> list[Note]:
        """Return all notes matching the filters. Admin-only operation.

        search:     case-insensitive substring match on title OR content.
        active:     None = both, True/False = only that status.
        sort_field: one of title, content, created_on, updated_on (default title).
        sort_order: "asc" (default) or "desc".
        """
        query = _notes.select()
        if search:
            pattern = _like_pattern(search)
            query = query.where(
                or_(
                    _notes.c.title.ilike(pattern, escape="\\"),
                    _notes.c.content.ilike(pattern, escape="\\"),
                )
            )
        if active is not None:
            query = query.where(_notes.c.active == active)

        column = _SORT_COLUMNS.get(sort_field or "title", _notes.c.title)
        ordered = column.desc() if (sort_order or "asc").lower() == "desc" else column.asc()
        query = query.order_by(ordered, _notes.c.id)

        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_note(r) for r in rows]

    def update_note(self, note_id: int, **fields) -> Optional[Note]:
        """Update mutable fields on a note and refresh updated_on.

        Accepted fields: title, content, image_url, active. Unknown keys raise
        ValueError. Returns the updated note, or None if note_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown note fields: {unknown!r}")
        with self.engine.begin() as conn:
            result = conn.execute(
                _notes.update().where(_notes.c.id == note_id).values(updated_on=_now_iso(), **fields)
            )
            if result.rowcount == 0:
                return None
            row = conn.execute(_notes.select().where(_notes.c.id == note_id)).fetchone()
        return _row_to_note(row)

    def delete_note(self, note_id: int) -> bool:
        """Delete a note. Returns True if deleted, False if not found."""
        with self.engine.begin() as conn:
            result = conn.execute(_notes.delete().where(_notes.c.id == note_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_note(row) -> Note:
    return Note(
        id=row.id,
        title=row.title,
        content=row.content,
        image_url=row.image_url,
        active=bool(row.active),
        created_by=row.created_by,
        created_on=row.created_on,
        updated_on=row.updated_on,
    )
