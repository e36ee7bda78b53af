from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

STATE_PATH = Path("/tmp/isaacgesture_enabled")


def init_enabled(default: bool = True, path: Path = STATE_PATH) -> None:
    if not path.exists():
        set_enabled(default, path)


def set_enabled(enabled: bool, path: Path = STATE_PATH) -> None:
    path.write_text("1" if enabled else "0")
    logger.debug("enabled flag -> %s (%s)", enabled, path)


def get_enabled(path: Path = STATE_PATH) -> bool:
    try:
        return path.read_text().strip() == "1"
    except FileNotFoundError:
        return True
