"""Pipeline steps that guard routes: authenticate and require_role.

Both are steps in the sense of postboard.context: they take the current
RequestContext and either raise or return the context to continue with.

authenticate resolves the bearer token to a stored user and attaches an
Identity. require_role(role) needs that identity and compares roles by
rank, so an admin passes any "user" requirement.
"""

import uuid
from dataclasses import replace

import structlog
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.auth.jwt import InvalidToken, verify_token
from postboard.context import Identity, Pipeline, RequestContext, Step
from postboard.errors import Forbidden, Unauthorized
from postboard.services.user_service import UserService

logger = structlog.get_logger()

ROLE_RANKS = {"user": 0, "admin": 1}


def role_satisfies(role: str, required: str) -> bool:
    """True if `role` is at least as privileged as `required`.

    Roles outside ROLE_RANKS only satisfy an exact match.
    """
    if role == required:
        return True
    if role not in ROLE_RANKS or required not in ROLE_RANKS:
        return False
    return ROLE_RANKS[role] >= ROLE_RANKS[required]


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise Unauthorized("Authentication required")
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Authorization header must be 'Bearer <token>'")
    return token


async def authenticate(
    ctx: RequestContext, request: Request, db: AsyncSession
) -> RequestContext:
    """Require a valid bearer token whose user still exists."""
    token = _bearer_token(request)
    try:
        subject = verify_token(token)
    except InvalidToken as e:
        logger.info("auth.rejected", reason=str(e), path=request.url.path)
        raise Unauthorized(str(e))

    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise Unauthorized("Invalid token: malformed subject")

    user = await UserService(db).get(user_id)
    if not user:
        logger.info("auth.rejected", reason="unknown user", user_id=subject)
        raise Unauthorized("User no longer exists")

    return replace(
        ctx,
        identity=Identity(user_id=user.id, username=user.username, role=user.role),
        user=user,
    )


def require_role(role: str) -> Step:
    """Build a step that lets through identities holding `role` (or higher)."""

    async def access_control(
        ctx: RequestContext, request: Request, db: AsyncSession
    ) -> RequestContext:
        if ctx.identity is None:
            raise Unauthorized("Authentication required")
        if not role_satisfies(ctx.identity.role, role):
            logger.info(
                "auth.forbidden",
                user_id=str(ctx.identity.user_id),
                role=ctx.identity.role,
                required=role,
            )
            raise Forbidden(f"Requires role '{role}'")
        return ctx

    access_control.__name__ = f"require_role({role!r})"
    return access_control


def requires_token(route) -> bool:
    """True if the route's dependencies include a pipeline that authenticates."""
    dependant = getattr(route, "dependant", None)
    pending = list(dependant.dependencies) if dependant else []
    while pending:
        dep = pending.pop()
        if isinstance(dep.call, Pipeline) and authenticate in dep.call.steps:
            return True
        pending.extend(dep.dependencies)
    return False


def check_bearer(request: Request) -> None:
    """Token check for requests rejected before their pipeline ran.

    FastAPI decodes and validates the body before it resolves any
    dependency, so a malformed body would otherwise hide a missing or
    invalid token. Only the header and signature are checked here; there
    is no database session at this point.
    """
    if not requires_token(request.scope.get("route")):
        return
    try:
        verify_token(_bearer_token(request))
    except InvalidToken as e:
        raise Unauthorized(str(e))
