# app/api/routers.py
from fastapi import APIRouter
from app.api.endpoints import auth, chat, health, tasks, users

router = APIRouter()

router.include_router(auth.router)
router.include_router(users.router)
router.include_router(tasks.router)
router.include_router(chat.router)
router.include_router(health.router)
