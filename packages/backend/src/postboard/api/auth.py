"""Auth API — exchange username/password for a bearer token.

- POST /auth/login → {"token": "<jwt>"}

Unknown usernames and wrong passwords get the same 401, so the response
does not reveal which usernames exist.
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.auth.jwt import issue_token
from postboard.db.engine import get_db
from postboard.errors import Unauthorized
from postboard.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    token: str


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with username and password → JWT token."""
    user = await UserService(db).authenticate(body.username, body.password)
    if not user:
        logger.info("auth.login_failed", username=body.username)
        raise Unauthorized("Invalid credentials")

    logger.info("auth.login", user_id=str(user.id))
    return TokenResponse(token=issue_token(str(user.id)))
