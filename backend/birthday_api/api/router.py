from fastapi import APIRouter

from birthday_api.api.routes import health, notifications, admin

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])  # list, read, delete
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])  # POST /reminders/run
