from fastapi import APIRouter
from api.routes.language import router as language_router

api_router = APIRouter()

api_router.include_router(language_router)
