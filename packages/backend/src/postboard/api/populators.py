"""Pipeline steps that load the resource a route parameter names.

The handler finds the loaded entity in ctx.resource and does not query
for it again. A miss raises NotFound before the handler is invoked.
"""

import uuid
from dataclasses import replace

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.context import RequestContext
from postboard.errors import NotFound
from postboard.services.post_service import PostService
from postboard.services.user_service import UserService


async def populate_user(
    ctx: RequestContext, request: Request, db: AsyncSession
) -> RequestContext:
    """Resolve the `username` path parameter to a User."""
    username = request.path_params.get("username", "")
    user = await UserService(db).get_by_username(username)
    if not user:
        raise NotFound("User not found")
    return replace(ctx, resource=user)


async def populate_post(
    ctx: RequestContext, request: Request, db: AsyncSession
) -> RequestContext:
    """Resolve the `post_id` path parameter to a Post."""
    try:
        post_id = uuid.UUID(str(request.path_params.get("post_id", "")))
    except ValueError:
        raise NotFound("Post not found")

    post = await PostService(db).get(post_id)
    if not post:
        raise NotFound("Post not found")
    return replace(ctx, resource=post)
