# vehiclesim/util/logging.py
from __future__ import annotations

import datetime
import sys
from typing import Optional

DEFAULT_PREFIX = "[VehicleSim]"


def _stamp() -> str:
    return datetime.datetime.now().astimezone().isoformat(timespec="seconds")


def log(msg: str, *, prefix: str = DEFAULT_PREFIX) -> None:
    """Print a timestamped log line (local time with timezone)."""
    print(f"{_stamp()}  {prefix} {msg}")


def log_error(msg: str, error: Optional[BaseException] = None, *, prefix: str = DEFAULT_PREFIX) -> None:
    """Print a timestamped error line to stderr, with the error text if given."""
    line = f"{_stamp()}  {prefix} {msg}"
    if error is not None:
        line += f": {error}"
    print(line, file=sys.stderr)
