from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Core
    config_path: str = os.getenv("DCU_CONFIG_PATH", "container-config.yaml")
    docker_bin: str = os.getenv("DCU_DOCKER_BIN", "docker")
    dry_run: bool = _env_bool("DCU_DRY_RUN", False)

    # Run journal (optional). Empty means: do not persist events.
    db_path: str = os.getenv("DCU_DB_PATH", "")

    # SMTP delivery (optional). When smtp_host is empty the sendmail binary is used.
    smtp_host: str = os.getenv("DCU_SMTP_HOST", "")
    smtp_port: int = _env_int("DCU_SMTP_PORT", 587)
    smtp_user: str | None = os.getenv("DCU_SMTP_USER")
    smtp_password: str | None = os.getenv("DCU_SMTP_PASSWORD")
    smtp_starttls: bool = _env_bool("DCU_SMTP_STARTTLS", True)


settings = Settings()
