from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.invites.dtos import AttendeeDTO, InviteDTO, InviteRepositoryError
from src.invites.repository.read_models import InviteReadModel, SqlInviteReadModel
from src.invites.schemas import failure_response
from src.invites.urls import GET_INVITE_URL

router = APIRouter()

INVITE_NOT_FOUND = "invite not found"


class AttendeeResponse(BaseModel):
    id: str
    invite_id: str
    name: str
    email: str
    phone: str
    age: int
    is_child: bool
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dto(cls, attendee: AttendeeDTO) -> "AttendeeResponse":
        return cls(
            id=attendee.id,
            invite_id=attendee.invite_id,
            name=attendee.name,
            email=attendee.email,
            phone=attendee.phone,
            age=attendee.age,
            is_child=attendee.is_child,
            active=attendee.active,
            created_at=attendee.created_at,
            updated_at=attendee.updated_at,
        )


class InviteResponse(BaseModel):
    """Invite details with its attendees keyed by attendee id."""

    id: str
    name: str
    greeting: str
    lang: str
    max_adults: int
    max_children: int
    rsvp: bool
    created_at: datetime | None = None
    first_opened_at: datetime | None = None
    last_opened_at: datetime | None = None
    updated_at: datetime | None = None
    attendees: dict[str, AttendeeResponse] = {}

    @classmethod
    def from_dto(cls, invite: InviteDTO) -> "InviteResponse":
        return cls(
            id=invite.id,
            name=invite.name,
            greeting=invite.greeting,
            lang=invite.lang,
            max_adults=invite.max_adults,
            max_children=invite.max_children,
            rsvp=invite.rsvp,
            created_at=invite.created_at,
            first_opened_at=invite.first_opened_at,
            last_opened_at=invite.last_opened_at,
            updated_at=invite.updated_at,
            attendees={
                attendee_id: AttendeeResponse.from_dto(attendee)
                for attendee_id, attendee in invite.attendees.items()
            },
        )


def get_invite_read_model(request: Request) -> InviteReadModel:
    """Dependency to get invite read model instance."""
    return SqlInviteReadModel(request.app.state.session_maker)


@router.get(GET_INVITE_URL, response_model=None)
async def get_invite(
    invite_id: str,
    read_model: InviteReadModel = Depends(get_invite_read_model),
) -> InviteResponse | JSONResponse:
    """
    Get an invite with its attendees.
    Failures still answer 200, flagged with status false and the error in err.
    """
    try:
        invite = await read_model.get_invite_by_id(invite_id)
    except InviteRepositoryError as e:
        return failure_response(200, str(e))

    if not invite.exists:
        return failure_response(200, INVITE_NOT_FOUND, InviteResponse.from_dto(invite))

    try:
        attendees = await read_model.get_attendees_for_invite(invite.id)
    except InviteRepositoryError as e:
        return failure_response(200, str(e), InviteResponse.from_dto(invite))

    return InviteResponse.from_dto(invite.with_attendees(attendees))
