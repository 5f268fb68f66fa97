"""Runtime settings for the story backend client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_URL = "http://127.0.0.1:1337"
DEFAULT_STATUS_ID = "5f0f33205f5695666b0d2e7e"
DEFAULT_HOME_ROUTE = "/"


class ClientConfigFile(BaseModel):
    """Shape of the front-end `config.json` shared with the web client."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    api_url: str = Field(alias="apiURL", min_length=1)


@dataclass(frozen=True)
class IntakeSettings:
    """Where the backend lives and the fixed values the form submits."""

    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    default_status_id: str = DEFAULT_STATUS_ID
    home_route: str = DEFAULT_HOME_ROUTE

    @property
    def graphql_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/graphql"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _float_env(name: str, default: float, *, minimum: float, maximum: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def load_config_file(path: Path) -> ClientConfigFile:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return ClientConfigFile.model_validate(payload)


def load_settings(config_path: Path | None = None) -> IntakeSettings:
    """Resolve settings from env, falling back to `config.json` then defaults."""
    api_url = _env("STORY_INTAKE_API_URL")
    if not api_url and config_path is not None:
        api_url = load_config_file(config_path).api_url
    return IntakeSettings(
        api_url=(api_url or DEFAULT_API_URL).rstrip("/"),
        timeout_seconds=_float_env(
            "STORY_INTAKE_TIMEOUT_SECONDS", 30.0, minimum=1.0, maximum=300.0
        ),
        default_status_id=_env("STORY_INTAKE_DEFAULT_STATUS_ID") or DEFAULT_STATUS_ID,
        home_route=_env("STORY_INTAKE_HOME_ROUTE") or DEFAULT_HOME_ROUTE,
    )
