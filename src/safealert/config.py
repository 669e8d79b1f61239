# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    mongo_uri: str
    db_name: str
    uploads_dir: Path
    public_dir: Path
    host: str
    port: int
    reload: bool
    log_level: str
    hash_time_cost: int
    hash_memory_cost: int
    hash_parallelism: int


def get_settings() -> Settings:
    """Read settings from the environment (and .env, if present)."""
    return Settings(
        mongo_uri=os.getenv("SAFEALERT_MONGO_URI", "mongodb://localhost:27017"),
        db_name=os.getenv("SAFEALERT_DB_NAME", "safealert"),
        uploads_dir=Path(os.getenv("SAFEALERT_UPLOADS_DIR", "uploads")).resolve(),
        public_dir=Path(os.getenv("SAFEALERT_PUBLIC_DIR", "public")).resolve(),
        host=os.getenv("SAFEALERT_HOST", "0.0.0.0"),
        port=int(os.getenv("SAFEALERT_PORT", "3000")),
        reload=_env_bool("SAFEALERT_RELOAD"),
        log_level=os.getenv("SAFEALERT_LOG_LEVEL", "INFO").upper(),
        # argon2 defaults (RFC 9106 low-memory profile)
        hash_time_cost=int(os.getenv("SAFEALERT_HASH_TIME_COST", "3")),
        hash_memory_cost=int(os.getenv("SAFEALERT_HASH_MEMORY_COST", "65536")),
        hash_parallelism=int(os.getenv("SAFEALERT_HASH_PARALLELISM", "4")),
    )
