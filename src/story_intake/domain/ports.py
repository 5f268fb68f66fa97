"""Ports for collaborators the workflow consumes but does not own."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SessionContext:
    """Read-only authentication state passed into the workflow."""

    is_authenticated: bool = False
    jwt: str | None = None

    @classmethod
    def anonymous(cls) -> SessionContext:
        return cls()

    @classmethod
    def with_token(cls, jwt: str) -> SessionContext:
        return cls(is_authenticated=bool(jwt.strip()), jwt=jwt.strip() or None)


class Navigator(Protocol):
    """Moves the user to another route once the workflow is done."""

    def navigate(self, route: str) -> None:
        ...


class FileReader(Protocol):
    """Reads the full text content of a user-selected file."""

    def read_text(self, path: str) -> str:
        ...
