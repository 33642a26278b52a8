"""Tests for SqlInviteWriteModel."""

import pytest
from sqlalchemy import func, select

from src.config.database import async_session_manager
from src.invites.dtos import AttendeeDTO, InviteDTO, InviteRepositoryError
from src.invites.repository.orm_models import Attendee, Invite
from src.invites.repository.read_models import SqlInviteReadModel
from src.invites.repository.write_models import SqlInviteWriteModel


async def count_attendees(session_maker) -> int:
    async with async_session_manager(session_maker) as session:
        result = await session.execute(select(func.count()).select_from(Attendee))
        return result.scalar_one()


async def get_invite_row(session_maker, invite_id: str) -> Invite:
    async with async_session_manager(session_maker) as session:
        result = await session.execute(select(Invite).where(Invite.id == invite_id))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_set_rsvp(session_maker, create_invite):
    """Test that set_rsvp flips the flag and stamps updated_at."""
    await create_invite("abc-123")
    write_model = SqlInviteWriteModel(session_maker)

    await write_model.set_rsvp(True, "abc-123")

    invite = await get_invite_row(session_maker, "abc-123")
    assert invite.rsvp is True
    assert invite.updated_at is not None


@pytest.mark.asyncio
async def test_set_rsvp_unknown_invite_is_not_an_error(session_maker):
    write_model = SqlInviteWriteModel(session_maker)

    await write_model.set_rsvp(True, "unknown-id")


@pytest.mark.asyncio
async def test_save_attendee_generates_id(session_maker, create_invite):
    await create_invite("abc-123")
    write_model = SqlInviteWriteModel(session_maker)

    attendee_id = await write_model.save_attendee(AttendeeDTO(name="Jane"), "abc-123")

    assert attendee_id
    attendees = await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123")
    assert [attendee.id for attendee in attendees] == [attendee_id]
    assert attendees[0].updated_at is None


@pytest.mark.asyncio
async def test_save_attendee_twice_updates_in_place(session_maker, create_invite):
    """Test that saving the same attendee id twice keeps one row with the latest values."""
    await create_invite("abc-123")
    write_model = SqlInviteWriteModel(session_maker)

    await write_model.save_attendee(
        AttendeeDTO(id="att-1", name="Jane", email="j@x.com", phone="555", age=30), "abc-123"
    )
    await write_model.save_attendee(
        AttendeeDTO(id="att-1", name="Jane Doe", email="jane@x.com", phone="556", age=31, active=False),
        "abc-123",
    )

    assert await count_attendees(session_maker) == 1
    attendees = await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123")
    attendee = attendees[0]
    assert attendee.name == "Jane Doe"
    assert attendee.email == "jane@x.com"
    assert attendee.phone == "556"
    assert attendee.age == 31
    assert attendee.active is False
    assert attendee.updated_at is not None


@pytest.mark.asyncio
async def test_save_attendee_of_another_invite_fails(session_maker, create_invite):
    """Test that an attendee id owned by one invite cannot be overwritten through another."""
    await create_invite("abc-123")
    await create_invite("def-456")
    write_model = SqlInviteWriteModel(session_maker)
    await write_model.save_attendee(AttendeeDTO(id="att-1", name="Jane"), "abc-123")

    with pytest.raises(InviteRepositoryError):
        await write_model.save_attendee(AttendeeDTO(id="att-1", name="Mallory"), "def-456")

    attendees = await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123")
    assert attendees[0].name == "Jane"


@pytest.mark.asyncio
async def test_update_invite_attending_saves_attendees(session_maker, create_invite):
    await create_invite("abc-123")
    write_model = SqlInviteWriteModel(session_maker)

    await write_model.update_invite(
        invite_id="abc-123",
        rsvp=True,
        attendees=[AttendeeDTO(name="Jane", age=30), AttendeeDTO(name="Tim", age=6, is_child=True)],
    )

    invite = await get_invite_row(session_maker, "abc-123")
    assert invite.rsvp is True
    attendees = await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123")
    assert sorted(attendee.name for attendee in attendees) == ["Jane", "Tim"]


@pytest.mark.asyncio
async def test_update_invite_not_attending_leaves_attendees_alone(session_maker, create_invite):
    """Test that rsvp false neither creates nor modifies attendee rows."""
    await create_invite("abc-123")
    write_model = SqlInviteWriteModel(session_maker)
    await write_model.save_attendee(AttendeeDTO(id="att-1", name="Jane", age=30), "abc-123")

    await write_model.update_invite(
        invite_id="abc-123",
        rsvp=False,
        attendees=[AttendeeDTO(id="att-1", name="Changed", age=99), AttendeeDTO(name="New")],
    )

    assert await count_attendees(session_maker) == 1
    attendees = await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123")
    assert attendees[0].name == "Jane"
    assert attendees[0].age == 30
    invite = await get_invite_row(session_maker, "abc-123")
    assert invite.rsvp is False
    assert invite.updated_at is not None


@pytest.mark.asyncio
async def test_update_invite_failure_rolls_back_rsvp(session_maker, create_invite):
    """Test that a failing attendee undoes the RSVP flag written in the same update."""
    await create_invite("abc-123")
    await create_invite("def-456")
    write_model = SqlInviteWriteModel(session_maker)
    await write_model.save_attendee(AttendeeDTO(id="att-1", name="Jane"), "def-456")

    with pytest.raises(InviteRepositoryError):
        await write_model.update_invite(
            invite_id="abc-123",
            rsvp=True,
            attendees=[AttendeeDTO(name="Tim"), AttendeeDTO(id="att-1", name="Mallory")],
        )

    invite = await get_invite_row(session_maker, "abc-123")
    assert invite.rsvp is False
    assert await SqlInviteReadModel(session_maker).get_attendees_for_invite("abc-123") == []


@pytest.mark.asyncio
async def test_create_invite(session_maker):
    write_model = SqlInviteWriteModel(session_maker)

    invite = await write_model.create_invite(InviteDTO(name="The Smiths", greeting="Hi!"))

    assert invite.id
    assert invite.lang == "en"
    assert invite.created_at is not None
    stored = await get_invite_row(session_maker, invite.id)
    assert stored.greeting == "Hi!"


@pytest.mark.asyncio
async def test_create_invite_duplicate_id_fails(session_maker, create_invite):
    await create_invite("abc-123")

    with pytest.raises(InviteRepositoryError) as exc_info:
        await create_invite("abc-123")

    assert exc_info.value.operation == "create invite"


@pytest.mark.asyncio
async def test_save_attendee_unknown_invite_fails(session_maker):
    """Test that an attendee cannot be stored under an invite that does not exist."""
    write_model = SqlInviteWriteModel(session_maker)

    with pytest.raises(InviteRepositoryError) as exc_info:
        await write_model.save_attendee(AttendeeDTO(name="Jane"), "unknown-id")

    assert exc_info.value.operation == "save attendee"
    assert await count_attendees(session_maker) == 0
