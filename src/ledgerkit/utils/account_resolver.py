"""Utility for resolving account references to UIDs."""

import re

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import NotFoundError, account_path_not_found

_UID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def resolve_account(account_service: AccountService, account: str) -> str:
    """Resolve an account full name or UID to an account UID.

    Args:
        account_service: AccountService instance
        account: Full name (e.g. "Expenses:Groceries") or 32-character UID

    Returns:
        Account UID

    Raises:
        NotFoundError: If account is not found
    """
    reference = account.strip()
    if _UID_PATTERN.match(reference):
        return account_service.get_account(reference).uid

    found = account_service.find_by_full_name(reference)
    if found is None:
        raise NotFoundError(account_path_not_found(reference))
    return found.uid
