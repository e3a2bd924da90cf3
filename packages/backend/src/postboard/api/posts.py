"""Post API routes.

- GET /posts → search, newest first
- POST /posts → create, the caller becomes the author
- GET /posts/{post_id} → loaded by populate_post
- DELETE /posts/{post_id} → author or admin only

DELETE authenticates before it populates, so a request without a token
gets 401 whether or not the post exists.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.api.populators import populate_post
from postboard.auth.gates import authenticate
from postboard.context import Pipeline, RequestContext
from postboard.db.engine import get_db
from postboard.schemas.post import PostCreate, PostRead
from postboard.services.post_service import PostService

router = APIRouter(prefix="/posts")

AUTHENTICATED = Pipeline(authenticate)
POST_BY_ID = Pipeline(populate_post)
OWN_POST = Pipeline(authenticate, populate_post)


def _svc(db: AsyncSession = Depends(get_db)) -> PostService:
    return PostService(db)


@router.get("", response_model=list[PostRead])
async def search_posts(
    user: Optional[str] = Query(None, description="Filter by author username"),
    q: Optional[str] = Query(None, description="Substring of the post text"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: PostService = Depends(_svc),
):
    return await svc.search(username=user, text=q, limit=limit, offset=offset)


@router.post("", response_model=PostRead, status_code=201)
async def create_post(
    body: PostCreate,
    ctx: RequestContext = Depends(AUTHENTICATED),
    svc: PostService = Depends(_svc),
):
    return await svc.create(ctx.user, body.text)


@router.get("/{post_id}", response_model=PostRead)
async def fetch_post(
    post_id: str,
    ctx: RequestContext = Depends(POST_BY_ID),
):
    return ctx.resource


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    ctx: RequestContext = Depends(OWN_POST),
    svc: PostService = Depends(_svc),
):
    await svc.delete(ctx.resource, ctx.identity)
    return {"success": True}
