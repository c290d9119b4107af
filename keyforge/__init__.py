"""
KeyForge - Random password generator with a time-bounded local history.

Features:
- Uppercase, lowercase, digit and symbol character classes
- Cryptographically secure randomness (with a logged fallback)
- 30-day history, pruned on every load and every new password
- Local JSON storage with owner-only permissions
"""

from .config import VERSION
from .generator import GenerationOptions, ValidationError, generate_password
from .history import HistoryStore, PasswordEntry
from .manager import PasswordHistoryManager
from .storage import Storage, StorageError

__version__ = VERSION
__author__ = "KeyForge contributors"
__license__ = "MIT"

__all__ = [
    "GenerationOptions",
    "ValidationError",
    "generate_password",
    "HistoryStore",
    "PasswordEntry",
    "PasswordHistoryManager",
    "Storage",
    "StorageError",
]
