"""
RegVerify — Document Store
Hierarchical records addressed by slash-joined paths, merge-only writes,
write-time sentinels, and record-created events.

Backends:
  - memory:   nothing persisted (tests)
  - file:     db.json in DATA_DIR (default)
  - postgres: whole record map kept in one JSONB row (DATABASE_URL)
"""
import copy
import json
import re
import threading
from collections import namedtuple
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from regverify.config import (
    BUSINESSES, VERIFICATION_REQUESTS, VERIFICATION_AUDIT,
    DATABASE_URL, DB_PATH, DATA_DIR, PERSIST_DATA,
)
from regverify.log import get_logger

logger = get_logger("db")


class DocumentExists(Exception):
    """Raised when create() targets a path that already holds a record."""


# ============================================================
# WRITE-TIME SENTINELS
# ============================================================
class _ServerTimestamp:
    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class Increment:
    """Adds `amount` to the stored number (or starts from 0) when written."""

    def __init__(self, amount=1):
        self.amount = amount

    def __repr__(self):
        return f"Increment({self.amount})"

    def __eq__(self, other):
        return isinstance(other, Increment) and other.amount == self.amount


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# PATHS
# ============================================================
def doc_path(*segments: str) -> str:
    for s in segments:
        if not s or "/" in s:
            raise ValueError(f"Invalid path segment: {s!r}")
    return "/".join(segments)


def business_path(business_id: str) -> str:
    return doc_path(BUSINESSES, business_id)


def request_path(business_id: str, req_id: str) -> str:
    return doc_path(BUSINESSES, business_id, VERIFICATION_REQUESTS, req_id)


def audit_path(business_id: str, req_id: str) -> str:
    return doc_path(BUSINESSES, business_id, VERIFICATION_AUDIT, req_id)


def daily_metric_path(business_id: str, day: str) -> str:
    return doc_path(BUSINESSES, business_id, "metrics", "daily", "days", day)


# ============================================================
# MERGE
# ============================================================
def _resolve(value, existing, now: str):
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, Increment):
        base = existing if isinstance(existing, (int, float)) and not isinstance(existing, bool) else 0
        return base + value.amount
    if isinstance(value, dict):
        return merge_patch(existing if isinstance(existing, dict) else {}, value, now)
    return copy.deepcopy(value)


def merge_patch(target: dict, patch: dict, now: str = None) -> dict:
    """Merge `patch` into a copy of `target`. Nested maps merge key by key."""
    now = now or utc_now_iso()
    merged = dict(target)
    for key, value in patch.items():
        merged[key] = _resolve(value, target.get(key), now)
    return merged


# ============================================================
# BACKENDS
# ============================================================
class MemoryBackend:
    name = "memory"

    def load(self) -> dict:
        return {}

    def save(self, docs: dict):
        pass


class FileBackend:
    name = "file"

    def __init__(self, path: Path = DB_PATH, persist: bool = PERSIST_DATA):
        self.path = Path(path)
        self.persist = persist

    def load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                docs = json.load(f)
            return docs if isinstance(docs, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"[DB] Could not read {self.path}: {e}, starting empty")
            return {}

    def save(self, docs: dict):
        if not self.persist:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump(docs, f, indent=2, default=str)
        tmp.replace(self.path)


class PostgresBackend:
    name = "postgres"

    def __init__(self, url: str):
        import psycopg2
        from psycopg2.pool import SimpleConnectionPool
        self._pool = SimpleConnectionPool(1, 5, url)
        self._init()
        logger.info("[DB] Connected to PostgreSQL")

    def _init(self):
        conn = self._pool.getconn()
        try:
            cur = conn.cursor()
            cur.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    id TEXT PRIMARY KEY DEFAULT 'main',
                    data JSONB NOT NULL DEFAULT '{}',
                    updated_at TIMESTAMP DEFAULT NOW()
                )
            """)
            cur.execute("INSERT INTO app_state (id, data) VALUES ('main', '{}') ON CONFLICT DO NOTHING")
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def load(self) -> dict:
        conn = self._pool.getconn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT data FROM app_state WHERE id='main'")
            row = cur.fetchone()
            if not row:
                return {}
            return row[0] if isinstance(row[0], dict) else json.loads(row[0])
        finally:
            self._pool.putconn(conn)

    def save(self, docs: dict):
        conn = self._pool.getconn()
        try:
            cur = conn.cursor()
            cur.execute("UPDATE app_state SET data=%s, updated_at=NOW() WHERE id='main'",
                        (json.dumps(docs, default=str),))
            conn.commit()
        finally:
            self._pool.putconn(conn)


# ============================================================
# CREATION EVENTS
# ============================================================
Subscription = namedtuple("Subscription", ["pattern", "regex", "callback"])


def _compile_pattern(pattern: str):
    """'businesses/{businessId}/verification_requests/{reqId}' -> regex with named groups."""
    parts = []
    for seg in pattern.split("/"):
        m = re.fullmatch(r"\{(\w+)\}", seg)
        parts.append(f"(?P<{m.group(1)}>[^/]+)" if m else re.escape(seg))
    return re.compile("^" + "/".join(parts) + "$")


# ============================================================
# STORE
# ============================================================
class DocumentStore:
    """Thread-safe record store. Every mutation is a merge, never a replace."""

    def __init__(self, backend=None):
        self.backend = backend or MemoryBackend()
        self._lock = threading.RLock()
        self._docs: Dict[str, dict] = self.backend.load()
        self._subscriptions: List[Subscription] = []

    # ── reads ──
    def get(self, path: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs.get(path)
            return copy.deepcopy(doc) if doc is not None else None

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._docs

    # ── writes ──
    def set(self, path: str, patch: dict) -> dict:
        """Merge-write `patch`; creates the record when absent (no event)."""
        with self._lock:
            merged = merge_patch(self._docs.get(path, {}), patch)
            self._docs[path] = merged
            self.backend.save(self._docs)
            return copy.deepcopy(merged)

    def set_if(self, path: str, patch: dict, predicate: Callable[[Optional[dict]], bool]) -> Tuple[bool, Optional[dict]]:
        """Merge-write only if predicate(current record) holds. Atomic with respect to other writers."""
        with self._lock:
            current = self._docs.get(path)
            if not predicate(copy.deepcopy(current) if current is not None else None):
                return False, copy.deepcopy(current) if current is not None else None
            return True, self.set(path, patch)

    def create(self, path: str, data: dict) -> dict:
        """Create a new record and fire record-created subscribers exactly once."""
        with self._lock:
            if path in self._docs:
                raise DocumentExists(path)
            created = self.set(path, data)
        self._dispatch_created(path, created)
        return created

    # ── events ──
    def on_create(self, pattern: str, callback: Callable[[dict, Dict[str, str]], None]):
        """Subscribe `callback(snapshot, params)` to creation of records matching `pattern`."""
        self._subscriptions.append(Subscription(pattern, _compile_pattern(pattern), callback))

    def _dispatch_created(self, path: str, snapshot: dict):
        for sub in list(self._subscriptions):
            m = sub.regex.match(path)
            if not m:
                continue
            try:
                sub.callback(copy.deepcopy(snapshot), m.groupdict())
            except Exception:
                # The writer is not the handler's caller; the failure stays in the logs.
                logger.exception(f"[DB] on_create handler for {sub.pattern} failed on {path}")


# ============================================================
# DEFAULT STORE
# ============================================================
_default_store = None
_default_lock = threading.Lock()


def _default_backend():
    if DATABASE_URL:
        logger.info("[DB] Using PostgreSQL backend")
        return PostgresBackend(DATABASE_URL)
    logger.info(f"[DB] Using file backend ({DB_PATH.name} in {DATA_DIR})")
    return FileBackend(DB_PATH)


def get_store() -> DocumentStore:
    """Process-wide store chosen from configuration."""
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = DocumentStore(_default_backend())
        return _default_store
