import enum
from pydantic import BaseModel, Field


class AdminLevel(str, enum.Enum):
    none = "none"
    financial = "financial"
    super = "super"


_LEVEL_RANK = {AdminLevel.none: 0, AdminLevel.financial: 1, AdminLevel.super: 2}


class Actor(BaseModel):
    """Caller identity and permission level, as resolved by the auth provider."""
    actor_id: str = Field(..., min_length=1, max_length=64)
    admin_level: AdminLevel = AdminLevel.none

    def has_level(self, required: AdminLevel) -> bool:
        return _LEVEL_RANK[self.admin_level] >= _LEVEL_RANK[required]
