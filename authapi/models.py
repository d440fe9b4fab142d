"""Domain models for the auth gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class User:
    """A user record as stored in the backing document store."""

    email: str
    password: Optional[str]

    @staticmethod
    def from_record(data: Mapping[str, object]) -> "User":
        email = data.get("email")
        password = data.get("password")
        return User(
            email=str(email) if email is not None else "",
            password=password if isinstance(password, str) else None,
        )

    def to_record(self) -> Dict[str, Optional[str]]:
        return {"email": self.email, "password": self.password}


__all__ = ["User"]
