from fastapi import APIRouter, Request

from birthday_api.services.reminder_scheduler import STATE_STOPPED

router = APIRouter()

@router.get("/")
def health(request: Request):
    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    return {"status": "ok", "scheduler": scheduler.state if scheduler else STATE_STOPPED}
