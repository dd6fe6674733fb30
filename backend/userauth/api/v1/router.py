"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from userauth.api.v1 import auth, users

router = APIRouter()

# Authentication routes share the /users prefix with user management
# (/users/login, /users/logout) and own /tokens.
router.include_router(auth.router, tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
