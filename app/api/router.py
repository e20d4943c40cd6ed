from fastapi import APIRouter

from app.api.assist import router as assist_router
from app.api.status import router as status_router

api_router = APIRouter()
api_router.include_router(assist_router)
api_router.include_router(status_router)
