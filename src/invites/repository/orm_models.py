from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.config.table_names import TableNames
from src.models.base import Base, TimeStamp


class Invite(Base, TimeStamp):
    __tablename__ = TableNames.INVITE.value

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    greeting: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lang: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    max_adults: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rsvp: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Opened bookkeeping, written on every successful read
    first_opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    last_opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    def __repr__(self) -> str:
        return f"<Invite {self.id} rsvp={self.rsvp}>"


class Attendee(Base, TimeStamp):
    __tablename__ = TableNames.ATTENDEE.value

    invite_id: Mapped[str] = mapped_column(
        ForeignKey(f"{TableNames.INVITE.value}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_child: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Attendee {self.name} of invite {self.invite_id}>"
