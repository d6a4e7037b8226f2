"""Evaluation trigger routes.

Lets an external cron (or an operator) run a reminder check on demand. The
run goes through the scheduler, so it never overlaps the scheduled job.
"""

import logging

from fastapi import APIRouter, Request

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/check")
async def trigger_check(request: Request) -> dict[str, int]:
    """Run one evaluation pass and report how many reminders went out."""
    service = request.app.state.service
    processed = await service.trigger_reminder_check()
    logger.info("cron_check_triggered", extra={"reminders.delivered": processed})
    return {"processed": processed}


@router.get("/jobs")
async def list_jobs(request: Request) -> dict[str, list[dict]]:
    """Registered jobs with their run state."""
    service = request.app.state.service
    return {"jobs": [job.to_dict() for job in service.scheduler.get_jobs()]}
