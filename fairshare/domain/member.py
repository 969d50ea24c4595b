"""Member domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class MemberRole(StrEnum):
    """Member role in the space."""

    ADMIN = "admin"
    MEMBER = "member"


class Member(BaseModel):
    """Space membership data transfer object."""

    user_id: str = Field(..., description="User ID of the member")
    space_id: str = Field(..., description="Space (household) the member belongs to")
    role: MemberRole = Field(default=MemberRole.MEMBER, description="Member role in the space")
    joined_at: datetime | None = Field(default=None, description="When the member joined")
    display_name: str | None = Field(default=None, description="Username shown in insights")

    @property
    def name(self) -> str:
        """Display name, or a generic label when the profile has none."""
        return self.display_name or "Member"
