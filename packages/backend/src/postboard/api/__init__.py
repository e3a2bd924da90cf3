"""API route aggregation.

All routers registered here get mounted in main.py. The route table is
fixed at import time:

    GET    /                   —
    GET    /health             —
    POST   /auth/login         —
    GET    /users              —
    POST   /users              —
    GET    /users/me           authenticate
    PUT    /users/me           authenticate
    DELETE /users/me           authenticate
    GET    /users/{username}   populate_user
    GET    /posts              —
    POST   /posts              authenticate
    GET    /posts/{post_id}    populate_post
    DELETE /posts/{post_id}    authenticate → populate_post
    GET    /admin              authenticate → require_role("admin")

Gates are attached per route as a Pipeline dependency (see
postboard.context), not per router.
"""

from fastapi import APIRouter

from postboard.api.auth import router as auth_router
from postboard.api.meta import router as meta_router
from postboard.api.posts import router as posts_router
from postboard.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(meta_router, tags=["meta"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(posts_router, tags=["posts"])
