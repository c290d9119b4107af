"""
history.py - Time-bounded history of generated passwords

The history is a plain list of PasswordEntry owned by the caller. HistoryStore
never keeps a copy of it: every operation takes the current list and returns a
new one, and writing to storage only happens when the caller asks via persist().
"""
import json
import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from .config import MAX_AGE, STORAGE_KEY
from .storage import Storage

logger = logging.getLogger(__name__)

ID_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 6

# Seconds fraction of any length, e.g. ".12" or ".1234567"
FRACTION_RE = re.compile(r"(?<=:\d{2})\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Format an instant as UTC ISO-8601 with millisecond precision.

    Example: 2026-10-18T03:37:00.123Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive timestamps are taken as UTC. Returns None for anything unparsable.
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    text = FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)

    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class PasswordEntry:
    """One generated password and when it was created"""

    id: str
    value: str
    created_at: str  # ISO-8601, stored exactly as written

    @property
    def created(self) -> Optional[datetime]:
        """Parsed creation instant, None if the stored timestamp is invalid"""
        return parse_timestamp(self.created_at)

    def to_dict(self) -> dict:
        return {'id': self.id, 'value': self.value, 'createdAt': self.created_at}

    @classmethod
    def from_dict(cls, data) -> 'PasswordEntry':
        """
        Build an entry from its stored form.

        Raises:
            ValueError: If the record is not an object with string id/value/createdAt
        """
        if not isinstance(data, dict):
            raise ValueError(f"history record must be an object, got {type(data).__name__}")

        fields = {}
        for name in ('id', 'value', 'createdAt'):
            if not isinstance(data.get(name), str):
                raise ValueError(f"history record has no string {name!r}")
            fields[name] = data[name]

        return cls(id=fields['id'], value=fields['value'], created_at=fields['createdAt'])


def new_entry(value: str, now: Optional[datetime] = None,
              existing_ids: Iterable[str] = ()) -> PasswordEntry:
    """
    Create a history entry for a freshly generated password.

    The id is the creation timestamp plus a random suffix; the suffix is
    redrawn if it collides with one of `existing_ids`.
    """
    created_at = format_timestamp(now or utc_now())
    taken = set(existing_ids)

    while True:
        suffix = ''.join(secrets.choice(ID_SUFFIX_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
        entry_id = f"{created_at}-{suffix}"
        if entry_id not in taken:
            return PasswordEntry(id=entry_id, value=value, created_at=created_at)


def prune(entries: Iterable[PasswordEntry], now: Optional[datetime] = None,
          max_age: timedelta = MAX_AGE) -> List[PasswordEntry]:
    """
    Drop entries older than `max_age` or with an unparsable timestamp.

    The boundary is inclusive: an entry exactly `max_age` old survives.
    """
    now = now or utc_now()
    kept = []
    for entry in entries:
        created = entry.created
        if created is None:
            continue
        if now - created <= max_age:
            kept.append(entry)
    return kept


def sort_newest(entries: Iterable[PasswordEntry]) -> List[PasswordEntry]:
    """
    Sort entries newest-first by parsed creation time.

    Entries must have valid timestamps (run prune() first). Equal timestamps
    keep their input order.
    """
    return sorted(entries, key=lambda entry: entry.created, reverse=True)


def _unique_ids(entries: Iterable[PasswordEntry]) -> List[PasswordEntry]:
    seen = set()
    unique = []
    for entry in entries:
        if entry.id in seen:
            continue
        seen.add(entry.id)
        unique.append(entry)
    return unique


class HistoryStore:
    """Loads, updates and persists the password history"""

    def __init__(self, storage: Storage, key: str = STORAGE_KEY, max_age: timedelta = MAX_AGE,
                 clock: Callable[[], datetime] = utc_now):
        """
        Args:
            storage: Key-value storage holding the serialized history
            key: Storage key the history lives under
            max_age: Retention window
            clock: Returns the current aware datetime
        """
        self.storage = storage
        self.key = key
        self.max_age = max_age
        self.clock = clock

    def _tidy(self, entries: Iterable[PasswordEntry]) -> List[PasswordEntry]:
        entries = list(entries)
        kept = prune(entries, now=self.clock(), max_age=self.max_age)
        if len(kept) != len(entries):
            logger.debug("Pruned %d expired or invalid history entries", len(entries) - len(kept))
        return _unique_ids(sort_newest(kept))

    def load(self) -> List[PasswordEntry]:
        """
        Read the persisted history.

        Missing, unreadable or malformed data yields an empty history; single
        malformed records are skipped.

        Returns:
            Surviving entries, newest first
        """
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return []
            records = json.loads(raw)
        except (OSError, ValueError, RecursionError) as e:
            logger.warning("Ignoring unreadable password history: %s", e)
            return []

        if not isinstance(records, list):
            logger.warning("Ignoring password history that is not a list")
            return []

        entries = []
        for record in records:
            try:
                entries.append(PasswordEntry.from_dict(record))
            except ValueError as e:
                logger.debug("Skipping history record: %s", e)

        return self._tidy(entries)

    def append(self, history: Iterable[PasswordEntry], entry: PasswordEntry) -> List[PasswordEntry]:
        """
        Add a new entry in front of the history, then prune and sort.

        An existing entry with the same id is replaced. The result is not
        persisted; call persist() with it.
        """
        rest = [e for e in history if e.id != entry.id]
        return self._tidy([entry] + rest)

    def remove(self, history: Iterable[PasswordEntry], entry_id: str) -> List[PasswordEntry]:
        """
        Return the history without the entry whose id matches.

        Removing an unknown id returns an equal history.
        """
        return [e for e in history if e.id != entry_id]

    def persist(self, history: Iterable[PasswordEntry]) -> None:
        """
        Overwrite the stored history with `history`.

        Raises:
            StorageError: If the storage file cannot be written
        """
        records = [entry.to_dict() for entry in history]
        self.storage.set(self.key, json.dumps(records))
        logger.debug("Persisted %d history entries", len(records))
