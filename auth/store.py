"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Every method is synchronous and blocking. Route handlers call them through
core.worker_pool.WorkerPool so they run off the event loop.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/, notes/, or payments/.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from auth.models import User
from core.database import users as _users


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(create_db_engine("sqlite:///notevault.db"))
        user = store.register_user("alice", "alice@example.com", hash_password("secret"))
        store.get_by_email("alice@example.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def register_user(self, username: str, email: str, hashed_password: str) -> User:
        """Insert a new account and return it.

        The first account ever created gets role "admin"; every later one gets
        "user". The count and the insert share one transaction.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        """
        with self.engine.begin() as conn:
            existing = conn.execute(select(func.count()).select_from(_users)).scalar() or 0
            role = "admin" if existing == 0 else "user"
            result = conn.execute(
                _users.insert().values(
                    username=username,
                    email=email,
                    password=hashed_password,
                    role=role,
                    otp_enabled=False,
                    otp_verified=False,
                )
            )
            user_id = result.inserted_primary_key[0]
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row)

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by id. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_password(self, user_id: int, hashed_password: str) -> bool:
        """Replace the stored hash. Returns False if user_id was not found."""
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(password=hashed_password))
        return result.rowcount > 0

    def update_otp(
        self,
        user_id: int,
        *,
        enabled: bool,
        verified: bool,
        base32: str | None,
        auth_url: str | None,
    ) -> User | None:
        """Write all four OTP fields at once and return the updated user.

        Returns None if user_id was not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(
                    otp_enabled=enabled,
                    otp_verified=verified,
                    otp_base32=base32,
                    otp_auth_url=auth_url,
                )
            )
            if result.rowcount == 0:
                return None
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row)

    def mark_otp_verified(self, user_id: int, expected_base32: str) -> User | None:
        """Set otp_verified only if the stored secret is still expected_base32.

        Returns None if the user is gone, 2FA was disabled, or a newer secret
        replaced the one the code was checked against.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(
                    _users.c.id == user_id,
                    _users.c.otp_enabled.is_(True),
                    _users.c.otp_base32 == expected_base32,
                )
                .values(otp_verified=True)
            )
            if result.rowcount == 0:
                return None
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row)

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete an account. Owned notes go with it (FK cascade).

        Returns True if deleted, False if not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.password,
        role=row.role,
        otp_enabled=bool(row.otp_enabled),
        otp_verified=bool(row.otp_verified),
        otp_base32=row.otp_base32,
        otp_auth_url=row.otp_auth_url,
    )
