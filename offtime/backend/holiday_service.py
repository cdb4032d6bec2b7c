"""
Bank holiday source.
Fetches UK bank holidays from the gov.uk feed (or a static file) and caches them in-process.
"""
import json
import logging
import os
import time
from typing import Any, List, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Configuration
BANK_HOLIDAYS_URL = os.getenv("BANK_HOLIDAYS_URL", "https://www.gov.uk/bank-holidays.json")
BANK_HOLIDAYS_DIVISION = os.getenv("BANK_HOLIDAYS_DIVISION", "england-and-wales")
BANK_HOLIDAYS_FILE = os.getenv("BANK_HOLIDAYS_FILE")
CACHE_TTL = int(os.getenv("BANK_HOLIDAYS_CACHE_TTL", "86400"))  # seconds
REQUEST_TIMEOUT = 10.0

_cache = {"data": None, "ts": 0.0}


def clear_cache() -> None:
    _cache["data"] = None
    _cache["ts"] = 0.0


def extract_dates(payload: Any, division: str = BANK_HOLIDAYS_DIVISION) -> List[str]:
    """
    Pull ISO dates out of either a plain list of strings or the gov.uk shape
    ({division: {"events": [{"date": ...}, ...]}}).
    """
    if isinstance(payload, list):
        return [str(d) for d in payload]
    events = payload.get(division, {}).get("events", [])
    return [e["date"] for e in events]


def load_bank_holidays_file(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return extract_dates(json.load(f))


def fetch_bank_holidays(client: Optional[httpx.Client] = None) -> List[str]:
    """Fetch bank holiday dates from the configured feed; raises on HTTP or JSON errors"""
    if client is None:
        with httpx.Client(timeout=REQUEST_TIMEOUT) as owned:
            return fetch_bank_holidays(owned)

    response = client.get(BANK_HOLIDAYS_URL)
    response.raise_for_status()
    return extract_dates(response.json())


def get_bank_holidays(client: Optional[httpx.Client] = None) -> List[str]:
    """
    Bank holiday dates as ISO strings.

    Cached for CACHE_TTL seconds. Returns an empty list when the feed or the
    static file is unavailable so callers can carry on without deductions.
    """
    if BANK_HOLIDAYS_FILE:
        try:
            return load_bank_holidays_file(BANK_HOLIDAYS_FILE)
        except (OSError, ValueError, AttributeError, KeyError):
            logger.exception("Failed to read bank holidays from %s", BANK_HOLIDAYS_FILE)
            return []

    if _cache["data"] is not None and time.monotonic() - _cache["ts"] < CACHE_TTL:
        logger.debug("Bank holidays served from cache")
        return _cache["data"]

    try:
        dates = fetch_bank_holidays(client)
    except (httpx.HTTPError, ValueError, AttributeError, KeyError):
        logger.exception("Failed to fetch bank holidays from %s", BANK_HOLIDAYS_URL)
        return []

    _cache["data"] = dates
    _cache["ts"] = time.monotonic()
    logger.info("Fetched %d bank holidays", len(dates))
    return dates
