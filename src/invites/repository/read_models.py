import abc
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config.database import async_session_manager
from src.invites.dtos import AttendeeDTO, InviteDTO
from src.invites.repository.errors import storage_errors
from src.invites.repository.orm_models import Attendee, Invite
from src.models.base import utcnow

logger = logging.getLogger(__name__)


class InviteReadModel(abc.ABC):
    @abc.abstractmethod
    async def get_invite_by_id(self, invite_id: str) -> InviteDTO:
        """
        Get an invite by id and record that it was opened.
        Returns the empty InviteDTO when no such invite exists.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def get_attendees_for_invite(self, invite_id: str) -> list[AttendeeDTO]:
        raise NotImplementedError


class SqlInviteReadModel(InviteReadModel):
    """SQL implementation of the invite read model."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        session_overwrite: AsyncSession | None = None,
    ):
        self._session_maker = session_maker
        self._session_overwrite = session_overwrite

    async def get_invite_by_id(self, invite_id: str) -> InviteDTO:
        """
        Get an invite by id.
        The first successful read sets first_opened_at, every later one moves last_opened_at.
        """
        with storage_errors("get invite"):
            async with async_session_manager(
                self._session_maker, session_overwrite=self._session_overwrite
            ) as session:
                result = await session.execute(select(Invite).where(Invite.id == invite_id))
                invite = result.scalar_one_or_none()

                if not invite:
                    logger.info("invite %s not found", invite_id)
                    return InviteDTO()

                now = utcnow()
                # Conditional so that concurrent first reads cannot both claim it
                first_opened = await session.execute(
                    update(Invite)
                    .where(Invite.id == invite_id, Invite.first_opened_at.is_(None))
                    .values(first_opened_at=now)
                    .execution_options(synchronize_session=False)
                )
                if first_opened.rowcount == 0:
                    await session.execute(
                        update(Invite)
                        .where(Invite.id == invite_id)
                        .values(last_opened_at=now)
                        .execution_options(synchronize_session=False)
                    )
                await session.refresh(invite)

                return InviteDTO.from_orm_model(invite)

    async def get_attendees_for_invite(self, invite_id: str) -> list[AttendeeDTO]:
        with storage_errors("get attendees"):
            async with async_session_manager(
                self._session_maker, session_overwrite=self._session_overwrite
            ) as session:
                result = await session.execute(
                    select(Attendee).where(Attendee.invite_id == invite_id)
                )
                return [AttendeeDTO.from_orm_model(attendee) for attendee in result.scalars().all()]
