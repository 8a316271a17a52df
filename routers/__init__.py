from fastapi import APIRouter

from routers.messages import router as messages_router
from routers.realtime import router as realtime_router
from routers.users import router as users_router

router = APIRouter()
router.include_router(users_router, tags=["Users"])
router.include_router(messages_router, tags=["Messages"])
router.include_router(realtime_router, tags=["Realtime"])
