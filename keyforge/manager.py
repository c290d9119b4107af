"""
manager.py - Owns the generator state and history for one session
"""
import logging
from dataclasses import replace
from typing import List, Optional

from .config import STORAGE_KEY
from .generator import GenerationOptions, ValidationError, clamp_length, generate_password
from .history import HistoryStore, PasswordEntry, new_entry
from .storage import Storage

logger = logging.getLogger(__name__)


class PasswordHistoryManager:
    """Combines the generator, the history store and the current UI state"""

    def __init__(self, storage_file: str = "history.json", store: Optional[HistoryStore] = None):
        """
        Initialize the manager and load any saved history.

        Args:
            storage_file: Path of the storage file (ignored when `store` is given)
            store: Pre-built history store, mainly for tests
        """
        self.store = store or HistoryStore(Storage(storage_file), key=STORAGE_KEY)
        self.options = GenerationOptions()
        self.current_password: Optional[str] = None
        self.error: Optional[str] = None
        self.history: List[PasswordEntry] = self.store.load()

    def set_length(self, length: int) -> int:
        """Set the target length, clamped to the supported range"""
        self.options = replace(self.options, length=clamp_length(length))
        return self.options.length

    def toggle(self, name: str) -> bool:
        """
        Flip one character class on or off.

        Args:
            name: One of 'uppercase', 'lowercase', 'digits', 'symbols'

        Returns:
            The new state of that class
        """
        field = f"use_{name}"
        if not hasattr(self.options, field):
            raise ValueError(f"Unknown character class: {name}")
        value = not getattr(self.options, field)
        self.options = replace(self.options, **{field: value})
        return value

    def generate(self) -> PasswordEntry:
        """
        Generate a password with the current options and record it.

        On a validation failure the error is kept in `self.error` and neither
        the current password nor the history changes.

        Raises:
            ValidationError: If no character class is enabled
            StorageError: If the updated history cannot be saved
        """
        self.error = None
        try:
            password = generate_password(self.options)
        except ValidationError as e:
            self.error = str(e)
            raise

        entry = new_entry(password, now=self.store.clock(),
                          existing_ids=(e.id for e in self.history))
        self.current_password = password
        self.history = self.store.append(self.history, entry)
        logger.info("Generated a %d-character password", len(password))
        self.store.persist(self.history)
        return entry

    def delete(self, entry_id: str) -> bool:
        """
        Delete one history entry and save.

        Returns:
            True if an entry was removed, False if the id was unknown
        """
        before = len(self.history)
        self.history = self.store.remove(self.history, entry_id)
        removed = len(self.history) != before
        if removed:
            logger.info("Deleted history entry %s", entry_id)
        self.store.persist(self.history)
        return removed

    def find(self, entry_id: str) -> Optional[PasswordEntry]:
        for entry in self.history:
            if entry.id == entry_id:
                return entry
        return None
