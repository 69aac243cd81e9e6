import os
from dataclasses import dataclass

DEFAULT_PIN = "8448"
DEFAULT_ROSTER = ("Marcus", "Lisanna", "Nick", "Gea", "Dion", "Sander", "Yde")

# Modes offered by the filter selector; anything else means "all entries"
FILTER_MODES = ("week", "month", "year")


@dataclass(frozen=True)
class Settings:
    """Deployment settings, read once at startup."""

    roster: tuple[str, ...] = DEFAULT_ROSTER
    pin: str = DEFAULT_PIN


def _parse_roster(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_ROSTER
    names = tuple(n.strip() for n in raw.split(",") if n.strip())
    return names or DEFAULT_ROSTER


def resolve_database_url() -> str | None:
    """Work out the store connection URL from the environment.

    Returns None when running in production without DATABASE_URL, in which
    case the store runs in "unavailable" mode instead of falling back to SQLite.
    """
    db_path = os.getenv("DATABASE_PATH", "./dashboard.db")
    env = os.getenv("ENV", os.getenv("RENDER", "").lower() or "dev")

    url = os.getenv("DATABASE_URL")
    if not url:
        if env in ("prod", "production") or os.getenv("RENDER"):
            return None
        url = f"sqlite:///{db_path}"

    # Render hands out postgres:// but SQLAlchemy wants postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def load_settings() -> Settings:
    return Settings(
        roster=_parse_roster(os.getenv("DASHBOARD_ROSTER")),
        pin=os.getenv("DASHBOARD_PIN", DEFAULT_PIN),
    )
