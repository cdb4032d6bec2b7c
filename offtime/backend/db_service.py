"""
Database service layer for all persistence operations.
User records live in a single JSON file that is read and written whole.
"""
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Configuration
DATA_FILE = os.getenv("DATA_FILE", os.path.join("data", "data.json"))

# Active data file
db_path = None


def init_db(path: str = None) -> None:
    """Point the store at a data file (defaults to DATA_FILE)"""
    global db_path
    db_path = Path(path or DATA_FILE)
    logger.info("Using data file %s", db_path)


def get_db_path() -> Path:
    if db_path is None:
        init_db()
    return db_path


def read_db() -> Dict[str, Any]:
    """Load the whole database; a missing file is an empty database"""
    path = get_db_path()
    if not path.exists():
        return {"users": []}
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_db(db: Dict[str, Any]) -> None:
    """Replace the whole database file"""
    path = get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(db, f, indent=2)
    logger.debug("Wrote %d users to %s", len(db.get("users", [])), path)


def _find(users: List[Dict[str, Any]], user_id: str) -> Optional[Dict[str, Any]]:
    return next((u for u in users if u["id"] == user_id), None)


# ==================== USER OPERATIONS ====================

def get_all_users() -> List[Dict[str, Any]]:
    return read_db()["users"]


def find_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    return _find(read_db()["users"], user_id)


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    return next((u for u in read_db()["users"] if u["profile"].get("email") == email), None)


def create_user(profile: Dict[str, Any], year_allowances: List[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Insert a new user record with a generated id"""
    db = read_db()
    user = {
        "id": str(uuid.uuid4()),
        "profile": profile,
        "yearAllowances": year_allowances or [],
        "entries": [],
    }
    db["users"].append(user)
    write_db(db)
    return user


def update_user(user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Shallow-merge top-level fields into a user record"""
    db = read_db()
    user = _find(db["users"], user_id)
    if not user:
        return None
    user.update(updates)
    write_db(db)
    return user


# ==================== ENTRY OPERATIONS ====================

def add_entry(user_id: str, entry: Dict[str, Any]) -> bool:
    db = read_db()
    user = _find(db["users"], user_id)
    if not user:
        return False
    user.setdefault("entries", []).append(entry)
    write_db(db)
    return True


def update_entry(user_id: str, entry_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Merge updates into one entry; returns the updated entry"""
    db = read_db()
    user = _find(db["users"], user_id)
    if not user:
        return None
    entry = next((e for e in user.get("entries", []) if e["id"] == entry_id), None)
    if not entry:
        return None
    entry.update(updates)
    write_db(db)
    return entry


def delete_entry(user_id: str, entry_id: str) -> bool:
    db = read_db()
    user = _find(db["users"], user_id)
    if not user:
        return False
    entries = user.get("entries", [])
    remaining = [e for e in entries if e["id"] != entry_id]
    if len(remaining) == len(entries):
        return False
    user["entries"] = remaining
    write_db(db)
    return True


# ==================== ALLOWANCE OPERATIONS ====================

def upsert_year_allowance(user_id: str, allowance: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """Replace the allowance for allowance['year'], keeping the list sorted by year"""
    db = read_db()
    user = _find(db["users"], user_id)
    if not user:
        return None
    year_allowances = [a for a in user.get("yearAllowances", []) if a["year"] != allowance["year"]]
    year_allowances.append(allowance)
    year_allowances.sort(key=lambda a: a["year"])
    user["yearAllowances"] = year_allowances
    write_db(db)
    return year_allowances
