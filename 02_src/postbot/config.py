"""Project-level configuration, settings and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .logging_config import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "postbot.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_SESSION_TTL = 60 * 60  # one hour of inactivity
DEFAULT_TELEGRAM_API_URL = "https://api.telegram.org"
DEFAULT_HTTP_TIMEOUT = 10.0


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def parse_authorized_users(raw: str | None) -> frozenset[int]:
    """Parse a comma-separated list of Telegram user ids.

    Blank entries are dropped; entries that are not integers are logged and
    skipped so that one typo does not lock out the remaining users.
    """
    if not raw:
        return frozenset()

    users = set()
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            users.add(int(item))
        except ValueError:
            logger.warning("Ignoring invalid authorized user id: %r", item)
    return frozenset(users)


def _env_flag(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup."""

    bot_token: str = ""
    authorized_users: frozenset[int] = field(default_factory=frozenset)
    telegram_api_url: str = DEFAULT_TELEGRAM_API_URL
    session_ttl: int = DEFAULT_SESSION_TTL
    allow_tag_skip: bool = False
    wordpress_url: str = ""
    wordpress_username: str = ""
    wordpress_app_password: str = ""
    wordpress_post_status: str = "draft"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def has_bot_token(self) -> bool:
        return bool(self.bot_token)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", "").strip(),
            authorized_users=parse_authorized_users(
                os.getenv("TELEGRAM_AUTHORIZED_USERS")
            ),
            telegram_api_url=os.getenv(
                "TELEGRAM_API_URL", DEFAULT_TELEGRAM_API_URL
            ).rstrip("/"),
            session_ttl=int(os.getenv("SESSION_TTL_SECONDS", str(DEFAULT_SESSION_TTL))),
            allow_tag_skip=_env_flag(os.getenv("ALLOW_TAG_SKIP")),
            wordpress_url=os.getenv("WORDPRESS_URL", "").rstrip("/"),
            wordpress_username=os.getenv("WORDPRESS_USERNAME", ""),
            wordpress_app_password=os.getenv("WORDPRESS_APP_PASSWORD", ""),
            wordpress_post_status=os.getenv("WORDPRESS_POST_STATUS", "draft"),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))),
        )
