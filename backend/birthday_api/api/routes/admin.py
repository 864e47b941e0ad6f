from fastapi import APIRouter, Depends

from birthday_api.api.deps import get_scheduler, require_roles
from birthday_api.services.reminder_scheduler import ReminderScheduler

router = APIRouter(dependencies=[Depends(require_roles("admin"))])

@router.post("/reminders/run")
async def run_birthday_check(scheduler: ReminderScheduler = Depends(get_scheduler)):
    """Run the birthday scan now instead of waiting for the daily trigger.

    Re-runs within the 48h lookback do not duplicate alerts. Returns
    {"skipped": true} while another scan is still in progress.
    """
    report = await scheduler.trigger_now()
    if report is None:
        return {"skipped": True}
    return {"skipped": False, "report": report.as_dict()}
