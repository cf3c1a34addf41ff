"""Utility for resolving account references to IDs."""

from finledger.domain.ledger import LedgerStore

# Shortest id prefix accepted as a reference
MIN_PREFIX_LENGTH = 4


def resolve_account(store: LedgerStore, account: str) -> str:
    """Resolve an account name, ID or ID prefix to an account ID.

    Args:
        store: Loaded ledger store
        account: Full ID, unique ID prefix, or account name (case-insensitive)

    Returns:
        Account ID

    Raises:
        ValueError: If no account, or more than one, matches
    """
    if store.get_account(account) is not None:
        return account

    named = [acc for acc in store.accounts if acc.name.lower() == account.lower()]
    if len(named) == 1:
        return named[0].id
    if len(named) > 1:
        raise ValueError(f"Account name '{account}' is ambiguous; use the account ID")

    if len(account) >= MIN_PREFIX_LENGTH:
        prefixed = [acc for acc in store.accounts if acc.id.startswith(account)]
        if len(prefixed) == 1:
            return prefixed[0].id
        if len(prefixed) > 1:
            raise ValueError(f"Account ID prefix '{account}' is ambiguous")

    raise ValueError(f"Account '{account}' not found")
