"""Per-request context and the route pipeline that builds it.

A route declares an ordered Pipeline of steps, e.g.

    ADMIN_ONLY = Pipeline(authenticate, require_role("admin"))

and its handler receives the result with `ctx = Depends(ADMIN_ONLY)`.
Every step is an async function

    async def step(ctx, request, db) -> RequestContext

that either raises an AppError (ending the request) or returns a new
context. Contexts are frozen: steps hand forward an updated copy built
with dataclasses.replace() instead of mutating request state.

Pipelines are module-level constants, built once at import.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.db.engine import get_db


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as resolved by the authenticate gate."""

    user_id: uuid.UUID
    username: str
    role: str


@dataclass(frozen=True)
class RequestContext:
    identity: Optional[Identity] = None
    user: Any = None  # the caller's User row, set with identity
    resource: Any = None


Step = Callable[[RequestContext, Request, AsyncSession], Awaitable[RequestContext]]


class Pipeline:
    """An ordered list of steps, usable as a FastAPI dependency."""

    def __init__(self, *steps: Step):
        self.steps = tuple(steps)

    async def __call__(
        self, request: Request, db: AsyncSession = Depends(get_db)
    ) -> RequestContext:
        ctx = RequestContext()
        for step in self.steps:
            ctx = await step(ctx, request, db)
        return ctx

    def __repr__(self) -> str:
        names = ", ".join(getattr(s, "__name__", repr(s)) for s in self.steps)
        return f"Pipeline({names})"
