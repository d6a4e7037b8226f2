"""Owner command routes.

Thin HTTP wrappers over ReminderCommands. Every response carries reply
text, including failures.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()


class TrackRequest(BaseModel):
    name: str
    owner: str


class ReplyResponse(BaseModel):
    text: str


@router.post("/reminders")
async def track(body: TrackRequest, request: Request) -> ReplyResponse:
    commands = request.app.state.service.commands
    return ReplyResponse(text=await commands.track(body.name, body.owner))


@router.get("/reminders/{owner}")
async def list_reminders(owner: str, request: Request) -> ReplyResponse:
    commands = request.app.state.service.commands
    return ReplyResponse(text=await commands.list_for_owner(owner))


@router.get("/status/{name}")
async def check_status(
    name: str, request: Request, owner: str | None = None
) -> ReplyResponse:
    commands = request.app.state.service.commands
    return ReplyResponse(text=await commands.check_status(name, owner=owner))
