from fastapi import APIRouter

from app.api.v1.users import router as users_router
from app.api.v1.topics import router as topics_router
from app.api.v1.meetings import router as meetings_router
from app.api.v1.user_meetings import router as user_meetings_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(topics_router)
api_router.include_router(meetings_router)
api_router.include_router(user_meetings_router)
