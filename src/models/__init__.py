from .base import Base, BaseModel, TimeStamp, new_id, utcnow

__all__ = [
    "Base",
    "BaseModel",
    "TimeStamp",
    "new_id",
    "utcnow",
]
