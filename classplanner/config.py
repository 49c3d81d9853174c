"""
Runtime configuration read from the environment (.env supported).
"""

import logging
import os
from datetime import time
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()

# Server
PORT = int(os.getenv("PORT", 8000))
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Scheduling grid: comma-separated "HH:MM-HH:MM" teaching sessions.
# The gap between sessions (lunch) is never bookable.
SCHEDULE_SESSIONS = os.getenv("SCHEDULE_SESSIONS", "08:00-12:00,13:00-16:00")
# Every window and every block unit is half an hour.
SLOT_MINUTES = 30

ANY_ROOM_TYPE = "Any"


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` string into a ``datetime.time``."""
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def parse_sessions(raw: str) -> List[Tuple[time, time]]:
    """
    Parse ``"08:00-12:00,13:00-16:00"`` into ordered (start, end) pairs.

    Raises ValueError for malformed, inverted or overlapping sessions.
    """
    sessions: List[Tuple[time, time]] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            start_s, end_s = chunk.split("-")
            start, end = parse_clock(start_s), parse_clock(end_s)
        except ValueError:
            raise ValueError(f"Invalid session '{chunk}', expected HH:MM-HH:MM")
        if start >= end:
            raise ValueError(f"Session '{chunk}' ends before it starts")
        sessions.append((start, end))

    sessions.sort()
    for (_, prev_end), (next_start, _) in zip(sessions, sessions[1:]):
        if next_start < prev_end:
            raise ValueError("Teaching sessions must not overlap")
    return sessions


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install a single console handler on the root logger (idempotent)."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    ))
    root.addHandler(handler)
    root.setLevel(level)
