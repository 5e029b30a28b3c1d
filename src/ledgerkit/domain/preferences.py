"""Book-level preferences persisted in the database."""

from ledgerkit.database.base import Database

DEFAULT_CURRENCY_KEY = "default_currency"
DOUBLE_ENTRY_KEY = "double_entry"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def is_double_entry_enabled(db: Database) -> bool:
    """Return whether double-entry mode is on (the default)."""
    value = db.get_preference(DOUBLE_ENTRY_KEY)
    if value is None:
        return True
    return value.strip().lower() in _TRUE_VALUES


def set_double_entry_enabled(db: Database, enabled: bool) -> None:
    db.set_preference(DOUBLE_ENTRY_KEY, "true" if enabled else "false")
