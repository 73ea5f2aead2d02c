"""
api/routes/notes.py -- The caller's own notes.

Routes (all require a verified session):
  GET    /secure/api/user/notes                     -- list own notes
  POST   /secure/api/user/note                      -- create
  PATCH  /secure/api/user/note/update/{note_id}     -- partial update
  DELETE /secure/api/user/note/delete/{note_id}     -- delete

Ownership: a note that exists but belongs to someone else is reported as
404, the same as a missing note, so ids of other users' notes are not confirmed.
"""

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, NoteCreate, NotePatch, NoteResponse
from auth.dependencies import current_claims, require_session
from auth.errors import NotFound
from auth.models import Claims
from core.worker_pool import WorkerPool
from notes.models import Note
from notes.store import NoteStore

# Auth policy: every route requires a verified session (router-level dependency).
router = APIRouter(prefix="/secure/api", dependencies=[Depends(require_session)])


async def _owned_note(request: Request, note_id: int, claims: Claims) -> Note:
    pool: WorkerPool = request.app.state.pool
    note_store: NoteStore = request.app.state.note_store
    note = await pool.run(note_store.get_note, note_id)
    if note is None or note.created_by != claims.user_id:
        raise NotFound(f"Note {note_id} not found.")
    return note


@router.get("/user/notes", response_model=list[NoteResponse])
async def list_my_notes(request: Request, claims: Claims = Depends(current_claims)) -> list[NoteResponse]:
    note_store: NoteStore = request.app.state.note_store
    notes = await request.app.state.pool.run(note_store.list_user_notes, claims.user_id)
    return [NoteResponse.from_note(n) for n in notes]


@router.post("/user/note", response_model=NoteResponse, status_code=201)
async def create_note(
    request: Request,
    body: NoteCreate,
    claims: Claims = Depends(current_claims),
) -> NoteResponse:
    note_store: NoteStore = request.app.state.note_store
    note = Note(title=body.title, content=body.content, image_url=body.image_url, created_by=claims.user_id)
    created = await request.app.state.pool.run(note_store.create_note, note)
    return NoteResponse.from_note(created)


@router.patch("/user/note/update/{note_id}", response_model=NoteResponse)
async def update_note(
    request: Request,
    note_id: int,
    body: NotePatch,
    claims: Claims = Depends(current_claims),
) -> NoteResponse:
    """Apply the fields present in the body; omitted fields are unchanged.

    image_url may be sent as null to detach the image; other fields ignore null.
    """
    await _owned_note(request, note_id, claims)
    note_store: NoteStore = request.app.state.note_store

    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None or k == "image_url"}
    updated = await request.app.state.pool.run(note_store.update_note, note_id, **fields)
    if updated is None:
        raise NotFound(f"Note {note_id} not found.")
    return NoteResponse.from_note(updated)


@router.delete("/user/note/delete/{note_id}", response_model=MessageResponse)
async def delete_note(request: Request, note_id: int, claims: Claims = Depends(current_claims)) -> MessageResponse:
    await _owned_note(request, note_id, claims)
    note_store: NoteStore = request.app.state.note_store
    if not await request.app.state.pool.run(note_store.delete_note, note_id):
        raise NotFound(f"Note {note_id} not found.")
    return MessageResponse(message=f"Deleted note {note_id}.")
