"""Runtime configuration read from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_API_URL = "https://dev.to/api"
DEFAULT_API_TIMEOUT = 20.0
DEFAULT_CONTENT_DIR = "articles"
DEFAULT_REMOTE = "origin"
DEFAULT_IMAGE_URL_TEMPLATE = "https://raw.githubusercontent.com/{owner}/{repository}/{branch}/{path}"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(slots=True)
class PublishSettings:
    """Settings shared by the ``publish``, ``check`` and ``new`` commands."""

    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    api_timeout: float = DEFAULT_API_TIMEOUT
    content_dir: str = DEFAULT_CONTENT_DIR
    remote: str = DEFAULT_REMOTE
    stage_all: bool = False
    push: bool = True
    image_url_template: str = DEFAULT_IMAGE_URL_TEMPLATE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PublishSettings":
        """Build settings from ``environ`` (``os.environ`` by default)."""

        env = os.environ if environ is None else environ
        return cls(
            api_key=(env.get("DEV_TO_API_KEY") or "").strip() or None,
            api_url=(env.get("ARTICLESYNC_API_URL") or DEFAULT_API_URL).rstrip("/"),
            api_timeout=_env_float(env, "ARTICLESYNC_API_TIMEOUT", DEFAULT_API_TIMEOUT),
            content_dir=(env.get("ARTICLESYNC_CONTENT_DIR") or DEFAULT_CONTENT_DIR).strip(),
            remote=(env.get("ARTICLESYNC_REMOTE") or DEFAULT_REMOTE).strip(),
            stage_all=_env_flag(env, "ARTICLESYNC_STAGE_ALL", False),
            push=_env_flag(env, "ARTICLESYNC_PUSH", True),
            image_url_template=env.get("ARTICLESYNC_IMAGE_URL_TEMPLATE") or DEFAULT_IMAGE_URL_TEMPLATE,
            log_level=(env.get("ARTICLESYNC_LOG_LEVEL") or "INFO").upper(),
        )
