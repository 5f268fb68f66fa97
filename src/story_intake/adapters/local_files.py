"""Filesystem-backed collaborators."""

from __future__ import annotations

from pathlib import Path


class LocalFileReader:
    """Reads a selected file from local disk as UTF-8 text."""

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")


class LoggingNavigator:
    """Records navigation targets for headless runs."""

    def __init__(self) -> None:
        self.routes: list[str] = []

    def navigate(self, route: str) -> None:
        self.routes.append(route)

    @property
    def current_route(self) -> str | None:
        return self.routes[-1] if self.routes else None
