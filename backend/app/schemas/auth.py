from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPermissionsOut(BaseModel):
    user_id: UUID
    username: str
    role: str
    permissions: dict[str, list[str]]
