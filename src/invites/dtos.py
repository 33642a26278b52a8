from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.invites.repository.orm_models import Attendee, Invite


class InviteRepositoryError(Exception):
    """Raised when the invite store fails to read or write."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class AttendeeDTO:
    """DTO for one person attending under an invite."""

    id: str = ""
    invite_id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    age: int = 0
    is_child: bool = False
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_orm_model(cls, attendee: "Attendee") -> "AttendeeDTO":
        return cls(
            id=attendee.id,
            invite_id=attendee.invite_id,
            name=attendee.name,
            email=attendee.email or "",
            phone=attendee.phone or "",
            age=attendee.age or 0,
            is_child=bool(attendee.is_child),
            active=bool(attendee.active),
            created_at=as_utc(attendee.created_at),
            updated_at=as_utc(attendee.updated_at),
        )


@dataclass(frozen=True)
class InviteDTO:
    """
    DTO for an invite and its attendees.
    The default instance (empty id) stands for an invite that does not exist.
    """

    id: str = ""
    name: str = ""
    greeting: str = ""
    lang: str = ""
    max_adults: int = 0
    max_children: int = 0
    rsvp: bool = False
    created_at: datetime | None = None
    first_opened_at: datetime | None = None
    last_opened_at: datetime | None = None
    updated_at: datetime | None = None
    attendees: dict[str, AttendeeDTO] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def with_attendees(self, attendees: list[AttendeeDTO]) -> "InviteDTO":
        return replace(self, attendees={attendee.id: attendee for attendee in attendees})

    @classmethod
    def from_orm_model(cls, invite: "Invite") -> "InviteDTO":
        return cls(
            id=invite.id,
            name=invite.name,
            greeting=invite.greeting or "",
            lang=invite.lang,
            max_adults=invite.max_adults,
            max_children=invite.max_children,
            rsvp=bool(invite.rsvp),
            created_at=as_utc(invite.created_at),
            first_opened_at=as_utc(invite.first_opened_at),
            last_opened_at=as_utc(invite.last_opened_at),
            updated_at=as_utc(invite.updated_at),
        )
