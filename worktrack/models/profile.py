"""Profile data model and role helpers."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..utils.datetime_utils import utc_now


class Role(str, Enum):
    """Portal roles. Admin and staff share visibility; admin alone may delete."""
    ADMIN = "admin"
    STAFF = "staff"
    CLIENT = "client"


class Profile(BaseModel):
    """A portal user as stored in the `profiles` table."""
    id: str
    email: str
    full_name: Optional[str] = None
    role: Role = Role.CLIENT
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_staff_tier(self) -> bool:
        """Admin and staff see everything a client cannot."""
        return self.role in (Role.ADMIN, Role.STAFF)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
