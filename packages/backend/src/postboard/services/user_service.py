"""User service — business logic for accounts.

Routes and gates call this service, the service talks to the database.
Uniqueness of username and email is checked before insert so the error
can name the offending field; the unique constraints in the schema
catch anything that races past the check.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.auth.password import hash_password, verify_password
from postboard.db.models import Post, User
from postboard.errors import ValidationError

logger = structlog.get_logger()

# Query parameters accepted by search(); each is an exact match.
SEARCH_FIELDS = ("username", "email", "role", "firstname", "lastname")


def _conflict(field: str) -> ValidationError:
    return ValidationError(
        f"{field.capitalize()} is already taken",
        details=[{"field": field, "message": f"{field} must be unique"}],
    )


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lookups ────────────────────────────────────────

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalars().first()

    async def search(
        self,
        filters: dict[str, Optional[str]],
        limit: int = 50,
        offset: int = 0,
    ) -> list[User]:
        q = select(User)
        for field in SEARCH_FIELDS:
            value = filters.get(field)
            if value is None:
                continue
            if field == "email":
                value = value.lower()
            q = q.where(getattr(User, field) == value)
        q = q.order_by(User.username).limit(limit).offset(offset)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    # ─── Credentials ────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None."""
        user = await self.get_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    # ─── Mutations ──────────────────────────────────────

    async def create(
        self,
        username: str,
        email: str,
        password: str,
        firstname: Optional[str] = None,
        lastname: Optional[str] = None,
        role: str = "user",
    ) -> User:
        await self._ensure_unique(username=username, email=email)
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            firstname=firstname,
            lastname=lastname,
            role=role,
        )
        self.db.add(user)
        await self._commit()
        logger.info("users.created", user_id=str(user.id), username=username, role=role)
        return user

    async def update(self, user: User, changes: dict) -> User:
        """Apply a partial update. `password` is re-hashed; role is not editable.

        None clears the optional name fields and is ignored for the rest.
        """
        changes = {
            field: value
            for field, value in changes.items()
            if value is not None or field in ("firstname", "lastname")
        }
        await self._ensure_unique(
            username=changes.get("username"),
            email=changes.get("email"),
            exclude_id=user.id,
        )
        for field, value in changes.items():
            if field == "password":
                user.password_hash = hash_password(value)
            elif field in ("username", "email", "firstname", "lastname"):
                setattr(user, field, value)
        await self._commit()
        logger.info("users.updated", user_id=str(user.id), fields=sorted(changes))
        return user

    async def delete(self, user: User) -> None:
        """Delete a user together with their posts."""
        await self.db.execute(delete(Post).where(Post.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()
        logger.info("users.deleted", user_id=str(user.id))

    # ─── Helpers ────────────────────────────────────────

    async def _ensure_unique(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        clauses = []
        if username is not None:
            clauses.append(User.username == username)
        if email is not None:
            clauses.append(User.email == email)
        if not clauses:
            return

        q = select(User).where(or_(*clauses))
        if exclude_id is not None:
            q = q.where(User.id != exclude_id)
        result = await self.db.execute(q)
        for existing in result.scalars().all():
            if username is not None and existing.username == username:
                raise _conflict("username")
            raise _conflict("email")

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("Username or email is already taken")
