import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from src.invites.dtos import AttendeeDTO, InviteRepositoryError
from src.invites.repository.write_models import InviteWriteModel, SqlInviteWriteModel
from src.invites.schemas import APIResponse, failure_response
from src.invites.urls import UPDATE_INVITE_URL

logger = logging.getLogger(__name__)

router = APIRouter()


class AttendeeSubmit(BaseModel):
    """Submit one attendee. Leave id out to add a new attendee."""

    id: str | None = None
    name: str
    email: str = ""
    phone: str = ""
    age: int = 0
    is_child: bool = False
    active: bool = True


class InviteUpdateSubmit(BaseModel):
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "invite_id"))
    rsvp: bool
    data: list[AttendeeSubmit] = []


def get_invite_write_model(request: Request) -> InviteWriteModel:
    """Dependency to get invite write model instance."""
    return SqlInviteWriteModel(request.app.state.session_maker)


@router.post(UPDATE_INVITE_URL, response_model=APIResponse, response_model_exclude_none=True)
async def update_invite(
    invite_id: str,
    update_data: InviteUpdateSubmit,
    write_model: InviteWriteModel = Depends(get_invite_write_model),
) -> APIResponse | JSONResponse:
    """
    Record the RSVP answer of an invite.
    Attendees in the payload are only saved when rsvp is true.
    """
    if update_data.id and update_data.id != invite_id:
        return failure_response(400, f"invite id {update_data.id} does not match {invite_id}")

    attendees = [
        AttendeeDTO(
            id=attendee.id or "",
            invite_id=invite_id,
            name=attendee.name,
            email=attendee.email,
            phone=attendee.phone,
            age=attendee.age,
            is_child=attendee.is_child,
            active=attendee.active,
        )
        for attendee in update_data.data
    ]

    try:
        await write_model.update_invite(
            invite_id=invite_id,
            rsvp=update_data.rsvp,
            attendees=attendees,
        )
    except InviteRepositoryError as e:
        return failure_response(400, str(e))

    logger.info("invite %s answered rsvp=%s with %d attendees", invite_id, update_data.rsvp, len(attendees))
    return APIResponse(status=True)
