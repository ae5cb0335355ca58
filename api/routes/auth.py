"""
Authentication compatibility endpoint.

There is a single fixed user and no login; verify always succeeds.
"""

from fastapi import APIRouter

from api.schemas import VerifyResponse
from config import config

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/verify", response_model=VerifyResponse)
def verify():
    user = config.user
    return {
        "user": {
            "id": user.user_id,
            "username": user.username,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
        }
    }
