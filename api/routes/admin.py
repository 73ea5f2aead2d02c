"""
api/routes/admin.py -- Admin dashboard listings.

Routes (session + admin role):
  GET /admin/dashboard/users   -- every account
  GET /admin/dashboard/notes   -- every note, with search / active filter / sort

Read-only. Non-admin sessions get 403 from the role gate before any query runs.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import NoteResponse, UserResponse
from auth.dependencies import require_admin, require_session
from auth.store import UserStore
from core.worker_pool import WorkerPool
from notes.store import NoteStore

# Auth policy: session first, then role gate. Order matters -- the role gate
# reads the Claims require_session attaches.
router = APIRouter(
    prefix="/admin/dashboard",
    dependencies=[Depends(require_session), Depends(require_admin)],
)

_ACTIVE_FILTER = {"active": True, "inactive": False}


@router.get("/users", response_model=list[UserResponse])
async def list_users(request: Request) -> list[UserResponse]:
    pool: WorkerPool = request.app.state.pool
    user_store: UserStore = request.app.state.user_store
    users = await pool.run(user_store.list_users)
    return [UserResponse.from_user(u) for u in users]


@router.get("/notes", response_model=list[NoteResponse])
async def list_notes(
    request: Request,
    search: Optional[str] = Query(default=None, max_length=200),
    sort_field: Optional[str] = Query(default=None, max_length=20),
    sort_order: Optional[str] = Query(default=None, max_length=20),
    active_status: Optional[str] = Query(default=None, max_length=20),
) -> list[NoteResponse]:
    """List notes across all users.

    search        -- case-insensitive substring of title or content
    active_status -- "active" / "inactive"; anything else returns both
    sort_field    -- title (default), content, created_on, updated_on
    sort_order    -- asc (default) or desc

    Unrecognized filter or sort values fall back to the defaults.
    """
    pool: WorkerPool = request.app.state.pool
    note_store: NoteStore = request.app.state.note_store
    notes = await pool.run(
        note_store.list_notes,
        search=search,
        active=_ACTIVE_FILTER.get(active_status or ""),
        sort_field=sort_field,
        sort_order=sort_order,
    )
    return [NoteResponse.from_note(n) for n in notes]
