"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_SNAPSHOT = Path("data/snapshot.json")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Settings:
    snapshot_path: Path = DEFAULT_SNAPSHOT
    root_id: Optional[int] = None
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``SNOMED_QUERY_*`` variables."""

    env = os.environ if environ is None else environ

    raw_root = env.get("SNOMED_QUERY_ROOT_ID", "").strip()
    if raw_root and not raw_root.isdigit():
        raise ValueError(f"SNOMED_QUERY_ROOT_ID must be a concept id, got {raw_root!r}")

    return Settings(
        snapshot_path=Path(env.get("SNOMED_QUERY_SNAPSHOT") or DEFAULT_SNAPSHOT),
        root_id=int(raw_root) if raw_root else None,
        log_level=(env.get("SNOMED_QUERY_LOG_LEVEL") or "INFO").upper(),
    )


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
