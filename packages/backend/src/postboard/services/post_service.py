"""Post service — create, search and delete posts."""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.auth.gates import role_satisfies
from postboard.context import Identity
from postboard.db.models import Post, User
from postboard.errors import Forbidden

logger = structlog.get_logger()


class PostService:
    """Business logic for posts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, post_id: uuid.UUID) -> Optional[Post]:
        return await self.db.get(Post, post_id)

    async def search(
        self,
        username: Optional[str] = None,
        text: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Post]:
        """List posts, newest first.

        `username` restricts to one author, `text` is a case-insensitive
        substring match on the post body; `%` and `_` match literally.
        """
        q = select(Post)
        if username is not None:
            q = q.join(Post.user).where(User.username == username)
        if text:
            q = q.where(Post.text.icontains(text, autoescape=True))
        q = q.order_by(Post.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(q)
        return list(result.scalars().unique().all())

    async def create(self, author: User, text: str) -> Post:
        post = Post(text=text, user_id=author.id, user=author)
        self.db.add(post)
        await self.db.commit()
        logger.info("posts.created", post_id=str(post.id), user_id=str(author.id))
        return post

    async def delete(self, post: Post, identity: Identity) -> None:
        """Delete a post. Only its author or an admin may do so."""
        is_author = post.user_id == identity.user_id
        if not is_author and not role_satisfies(identity.role, "admin"):
            raise Forbidden("Only the author can delete this post")
        await self.db.delete(post)
        await self.db.commit()
        logger.info("posts.deleted", post_id=str(post.id), by=str(identity.user_id))
