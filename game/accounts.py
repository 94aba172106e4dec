"""Local demo accounts.

Passwords are stored as unsalted SHA-256 digests in the local store. This keeps
casual players apart on a shared machine and is not a security boundary.
"""
import datetime
import hashlib
import re
from typing import Optional

from storage.store import CURRENT_USER_KEY, USER_STATS_KEY, USERS_KEY, LocalStore

from .records import stats_for_user

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,20}$")
MIN_PASSWORD_LENGTH = 4


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def validate_username(username: str) -> bool:
    return bool(username) and _USERNAME_PATTERN.match(username) is not None


def validate_password(password: str) -> bool:
    return bool(password) and len(password) >= MIN_PASSWORD_LENGTH


def password_strength(password: str) -> str:
    if not password:
        return "empty"
    strength = 0
    if len(password) >= 4:
        strength += 1
    if len(password) >= 8:
        strength += 1
    if re.search(r"[A-Z]", password):
        strength += 1
    if re.search(r"[0-9]", password):
        strength += 1
    if re.search(r"[^A-Za-z0-9]", password):
        strength += 1

    if strength <= 2:
        return "weak"
    if strength <= 3:
        return "medium"
    return "strong"


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def create_user(store: LocalStore, username: str, password: str) -> None:
    username = (username or "").strip()
    if not validate_username(username):
        raise ValueError("Username must be 3-20 characters, letters/numbers/underscore only")
    if not validate_password(password):
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    users = store.get(USERS_KEY, {})
    if username in users:
        raise ValueError("Username already exists")

    users[username] = {
        "password_hash": hash_password(password),
        "created_at": _now_iso(),
        "last_login": None,
    }
    store.set(USERS_KEY, users)

    all_stats = store.get(USER_STATS_KEY, {})
    stats_for_user(all_stats, username)
    store.set(USER_STATS_KEY, all_stats)


def verify_user(store: LocalStore, username: str, password: str) -> bool:
    users = store.get(USERS_KEY, {})
    record = users.get(username)
    if record is None or record.get("password_hash") != hash_password(password):
        return False
    record["last_login"] = _now_iso()
    store.set(USERS_KEY, users)
    return True


def login(store: LocalStore, username: str, password: str) -> str:
    username = (username or "").strip()
    if not username or not password:
        raise ValueError("Please fill in all fields")
    if not verify_user(store, username, password):
        raise ValueError("Invalid username or password")
    store.set(CURRENT_USER_KEY, username)
    return username


def logout(store: LocalStore) -> None:
    store.delete(CURRENT_USER_KEY)


def current_user(store: LocalStore) -> Optional[str]:
    return store.get(CURRENT_USER_KEY)
