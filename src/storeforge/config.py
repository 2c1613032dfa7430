"""Runtime configuration.

Settings are read from environment variables:
- SF_DB_PATH: DuckDB file backing the reference data store
- SF_LOW_STOCK_THRESHOLD: quantity at or below which a tracked product is low on stock
- SF_LEAD_TIME_DAYS: supplier lead time used for reorder suggestions
- SF_SAFETY_FACTOR: multiplier applied on top of lead-time demand
- SF_ANALYTICS_WORKERS: thread pool size for concurrent analytics reads
- SF_LOG_LEVEL: root log level used by the CLI
- SF_CORS_ORIGINS: comma separated list of allowed browser origins
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_DB_PATH = "./data/storeforge.duckdb"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


def load_dotenv_file(path: Path | str = ".env") -> None:
    """Best-effort env loader for local runs. Existing variables win."""
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw in env_path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Configuration for the engine and its HTTP/CLI surfaces."""

    db_path: str = DEFAULT_DB_PATH

    # Inventory
    low_stock_threshold: int = 5
    lead_time_days: int = 14
    safety_factor: float = 1.5

    # Analytics
    analytics_workers: int = 6

    # Surfaces
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        origins_raw = os.environ.get("SF_CORS_ORIGINS", "").strip()
        origins = (
            [o.strip() for o in origins_raw.split(",") if o.strip()]
            if origins_raw
            else list(DEFAULT_CORS_ORIGINS)
        )
        return cls(
            db_path=os.environ.get("SF_DB_PATH", DEFAULT_DB_PATH),
            low_stock_threshold=_env_int("SF_LOW_STOCK_THRESHOLD", 5),
            lead_time_days=_env_int("SF_LEAD_TIME_DAYS", 14),
            safety_factor=_env_float("SF_SAFETY_FACTOR", 1.5),
            analytics_workers=max(1, _env_int("SF_ANALYTICS_WORKERS", 6)),
            log_level=os.environ.get("SF_LOG_LEVEL", "INFO").upper(),
            cors_origins=origins,
        )
