"""Client configuration loaded from pyproject.toml and the environment."""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from scienceio.errors import HELP_EMAIL, InvalidInputError
from scienceio.models import Credentials

API_URL = "https://api.aws.science.io/v2"
DEFAULT_TIMEOUT = 1200.0
MAX_POLL_DURATION_SEC = 300.0
POLL_SLEEP_DURATION_SEC = 2.0
MAX_CHARACTERS = 10_000

API_KEY_ID_ENV = "SCIENCEIO_API_KEY_ID"
API_KEY_SECRET_ENV = "SCIENCEIO_API_KEY_SECRET"
API_URL_ENV = "SCIENCEIO_API_URL"


class ScienceIOConfig(BaseModel):
    """Configuration for the ScienceIO client."""

    model_config = ConfigDict(frozen=True)

    api_url: str = API_URL
    help_email: str = HELP_EMAIL

    # Per-request HTTP timeout, seconds
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    # Polling (budget is per job, not per annotate call)
    max_poll_duration_seconds: float = Field(default=MAX_POLL_DURATION_SEC, gt=0)
    poll_interval_seconds: float = Field(default=POLL_SLEEP_DURATION_SEC, gt=0)

    # Segmentation
    max_characters: int = Field(default=MAX_CHARACTERS, gt=0)

    # None keeps the fan-out unbounded
    max_concurrent_jobs: int | None = Field(default=None, gt=0)


@lru_cache(maxsize=1)
def load_config() -> ScienceIOConfig:
    """Load configuration from pyproject.toml.

    Returns:
        ScienceIOConfig with settings from the [tool.scienceio] section,
        falling back to defaults if not found. SCIENCEIO_API_URL, when set,
        overrides the API URL.
    """
    tool_config: dict[str, Any] = {}
    pyproject_path = _find_pyproject()
    if pyproject_path is not None:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
        tool_config = dict(data.get("tool", {}).get("scienceio", {}))

    api_url = os.environ.get(API_URL_ENV)
    if api_url:
        tool_config["api_url"] = api_url

    return ScienceIOConfig(**tool_config)


def _find_pyproject() -> Path | None:
    """Find pyproject.toml by walking up from current file."""
    current = Path(__file__).resolve().parent
    for _ in range(10):  # Max 10 levels up
        candidate = current / "pyproject.toml"
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent
    return None


def load_credentials() -> Credentials:
    """Load the API key pair from the environment or a .env file in the cwd.

    Returns:
        Credentials built from SCIENCEIO_API_KEY_ID and SCIENCEIO_API_KEY_SECRET.

    Raises:
        InvalidInputError: If either variable is missing or empty.
    """
    load_dotenv(find_dotenv(usecwd=True))

    api_id = os.environ.get(API_KEY_ID_ENV, "")
    api_secret = os.environ.get(API_KEY_SECRET_ENV, "")
    if not api_id or not api_secret:
        raise InvalidInputError(
            f"Please set the environment variables {API_KEY_ID_ENV} and {API_KEY_SECRET_ENV}"
        )
    return Credentials(api_id=api_id, api_secret=api_secret)
