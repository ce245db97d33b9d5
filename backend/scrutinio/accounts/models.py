from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    """One row of the ``users`` table."""

    id: str
    username: str
    password: str = ""
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    is_admin: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> UserRecord:
        return cls(
            id=str(row.get("id") or ""),
            username=str(row.get("username") or ""),
            password=str(row.get("password") or ""),
            wins=max(0, int(row.get("wins") or 0)),
            losses=max(0, int(row.get("losses") or 0)),
            is_admin=bool(row.get("is_admin") or False),
        )

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()

    def public(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username}

    def session(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username, "is_admin": self.is_admin}

    def profile(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "wins": self.wins,
            "losses": self.losses,
        }


class PromotionResult(BaseModel):
    total: int
    promoted: UserRecord | None = None
