from fastapi import APIRouter

from .features.get_invite.router import router as get_invite_router
from .features.update_invite.router import router as update_invite_router

router = APIRouter()

router.include_router(get_invite_router)
router.include_router(update_invite_router)
