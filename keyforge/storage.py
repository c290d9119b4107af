'''
storage.py - Durable key-value storage on the local file system
All keys live in one JSON document; values are plain strings.
'''
import json
import logging
import os
import tempfile
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage file cannot be written"""


class Storage:
    """Manages a small persistent key-value store backed by one JSON file"""

    def __init__(self, filename: str = "history.json"):
        """
        Initialize storage with a filename.

        Args:
            filename: Path of the JSON file holding all keys
        """
        self.filename = filename

    def _read_all(self) -> Dict[str, str]:
        """
        Read the whole document.

        Raises:
            OSError: If the file exists but cannot be read
            ValueError: If the content is not a JSON object of strings
        """
        if not os.path.exists(self.filename):
            return {}

        with open(self.filename, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"{self.filename} does not contain a JSON object")
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.filename))
        try:
            # Write to a sibling temp file, then swap it in
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".keyforge-", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                # Owner read/write only (600) on Unix-like systems
                if os.name == 'posix':
                    os.chmod(tmp_path, 0o600)
                os.replace(tmp_path, self.filename)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            logger.error("Failed to write %s: %s", self.filename, e)
            raise StorageError(f"Could not write {self.filename}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        """
        Get the value stored under a key.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            OSError, ValueError: If the storage file is unreadable or malformed
            RecursionError: If the JSON is nested too deeply to decode
        """
        value = self._read_all().get(key)
        logger.debug("Read key %r from %s (%s)", key, self.filename,
                     "absent" if value is None else f"{len(value)} chars")
        return value

    def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, fully replacing the previous value.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            data = self._read_all()
        except (OSError, ValueError, RecursionError) as e:
            logger.warning("Discarding unreadable storage file %s: %s", self.filename, e)
            data = {}

        data[key] = value
        self._write_all(data)
        logger.debug("Wrote key %r to %s (%d chars)", key, self.filename, len(value))
