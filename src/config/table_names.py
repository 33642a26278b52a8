from enum import Enum


class TableNames(str, Enum):
    INVITE = "invite"
    ATTENDEE = "attendee"
