"""Invite write models - they take and return DTOs, never ORM models."""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config.database import async_session_manager
from src.invites.dtos import AttendeeDTO, InviteDTO, InviteRepositoryError
from src.invites.repository.errors import storage_errors
from src.invites.repository.orm_models import Attendee, Invite
from src.models.base import new_id, utcnow

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class InviteWriteModel(ABC):
    @abstractmethod
    async def set_rsvp(self, rsvp: bool, invite_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def save_attendee(self, attendee: AttendeeDTO, invite_id: str) -> str:
        """
        Insert or update an attendee of the invite.
        Returns the attendee id, generated when the attendee has none.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_invite(
        self,
        invite_id: str,
        rsvp: bool,
        attendees: list[AttendeeDTO],
    ) -> None:
        """
        Record an RSVP answer.
        Attendees are only saved when rsvp is true.
        """
        raise NotImplementedError


class SqlInviteWriteModel(InviteWriteModel):
    """Write operations for invites and attendees."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        session_overwrite: AsyncSession | None = None,
    ):
        self._session_maker = session_maker
        self._session_overwrite = session_overwrite

    def _session(self):
        return async_session_manager(self._session_maker, session_overwrite=self._session_overwrite)

    async def _set_rsvp(self, session: AsyncSession, rsvp: bool, invite_id: str) -> None:
        result = await session.execute(
            update(Invite)
            .where(Invite.id == invite_id)
            .values(rsvp=rsvp, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info("no invite %s to set rsvp on", invite_id)

    async def _upsert_attendee(
        self, session: AsyncSession, attendee: AttendeeDTO, invite_id: str
    ) -> str:
        dialect = session.get_bind().dialect.name
        if dialect not in UPSERT_DIALECTS:
            raise InviteRepositoryError("save attendee", f"upsert is not supported on {dialect}")
        insert = UPSERT_DIALECTS[dialect]

        attendee_id = attendee.id or new_id()
        now = utcnow()
        stmt = insert(Attendee).values(
            id=attendee_id,
            invite_id=invite_id,
            name=attendee.name,
            email=attendee.email,
            phone=attendee.phone,
            age=attendee.age,
            is_child=attendee.is_child,
            active=attendee.active,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "name": stmt.excluded.name,
                "email": stmt.excluded.email,
                "phone": stmt.excluded.phone,
                "age": stmt.excluded.age,
                "is_child": stmt.excluded.is_child,
                "active": stmt.excluded.active,
                "updated_at": now,
            },
            # An attendee id never moves to another invite
            where=Attendee.invite_id == invite_id,
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            raise InviteRepositoryError(
                "save attendee", f"attendee {attendee_id} belongs to another invite"
            )
        return attendee_id

    async def set_rsvp(self, rsvp: bool, invite_id: str) -> None:
        with storage_errors("set rsvp"):
            async with self._session() as session:
                await self._set_rsvp(session, rsvp, invite_id)

    async def save_attendee(self, attendee: AttendeeDTO, invite_id: str) -> str:
        with storage_errors("save attendee"):
            async with self._session() as session:
                return await self._upsert_attendee(session, attendee, invite_id)

    async def update_invite(
        self,
        invite_id: str,
        rsvp: bool,
        attendees: list[AttendeeDTO],
    ) -> None:
        """
        Set the RSVP flag and, when attending, upsert every attendee.
        Runs in one transaction: a failing attendee rolls the RSVP flag back too.
        """
        with storage_errors("update invite"):
            async with self._session() as session:
                await self._set_rsvp(session, rsvp, invite_id)
                if not rsvp:
                    return
                for attendee in attendees:
                    await self._upsert_attendee(session, attendee, invite_id)

    async def create_invite(self, invite: InviteDTO) -> InviteDTO:
        """Insert a new invite. Invites are created out of band, never through the API."""
        with storage_errors("create invite"):
            async with self._session() as session:
                row = Invite(
                    id=invite.id or new_id(),
                    name=invite.name,
                    greeting=invite.greeting,
                    lang=invite.lang or "en",
                    max_adults=invite.max_adults,
                    max_children=invite.max_children,
                    rsvp=invite.rsvp,
                    created_at=utcnow(),
                    first_opened_at=None,
                    last_opened_at=None,
                    updated_at=None,
                )
                session.add(row)
                await session.flush()
                return InviteDTO.from_orm_model(row)
