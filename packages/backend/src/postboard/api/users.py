"""User API routes.

- GET /users → search (exact-match filters on query params)
- POST /users → open registration, always role "user"
- GET|PUT|DELETE /users/me → the caller's own account
- GET /users/{username} → public profile, loaded by populate_user

/users/me is registered before /users/{username}; "me" is also a
reserved username.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.api.populators import populate_user
from postboard.auth.gates import authenticate
from postboard.context import Pipeline, RequestContext
from postboard.db.engine import get_db
from postboard.schemas.user import UserCreate, UserRead, UserUpdate
from postboard.services.user_service import UserService

router = APIRouter(prefix="/users")

AUTHENTICATED = Pipeline(authenticate)
USER_BY_USERNAME = Pipeline(populate_user)


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=list[UserRead])
async def search_users(
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    firstname: Optional[str] = Query(None),
    lastname: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: UserService = Depends(_svc),
):
    filters = {
        "username": username,
        "email": email,
        "role": role,
        "firstname": firstname,
        "lastname": lastname,
    }
    return await svc.search(filters, limit=limit, offset=offset)


@router.post("", response_model=UserRead, status_code=201)
async def create_user(body: UserCreate, svc: UserService = Depends(_svc)):
    """Register a new account. Admins are created from the CLI only."""
    return await svc.create(
        username=body.username,
        email=body.email,
        password=body.password,
        firstname=body.firstname,
        lastname=body.lastname,
    )


@router.get("/me", response_model=UserRead)
async def fetch_me(ctx: RequestContext = Depends(AUTHENTICATED)):
    return ctx.user


@router.put("/me", response_model=UserRead)
async def update_me(
    body: UserUpdate,
    ctx: RequestContext = Depends(AUTHENTICATED),
    svc: UserService = Depends(_svc),
):
    return await svc.update(ctx.user, body.model_dump(exclude_unset=True))


@router.delete("/me")
async def delete_me(
    ctx: RequestContext = Depends(AUTHENTICATED),
    svc: UserService = Depends(_svc),
):
    """Delete the caller's account and all of their posts."""
    await svc.delete(ctx.user)
    return {"success": True}


@router.get("/{username}", response_model=UserRead)
async def fetch_user(
    username: str,
    ctx: RequestContext = Depends(USER_BY_USERNAME),
):
    return ctx.resource
