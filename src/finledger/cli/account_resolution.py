"""CLI helpers for account and transaction resolution."""

from __future__ import annotations

import click

from finledger.cli.error_handling import handle_domain_error
from finledger.domain.ledger import LedgerStore
from finledger.utils.account_resolver import MIN_PREFIX_LENGTH, resolve_account


def resolve_account_or_exit(ctx: click.Context, store: LedgerStore, account: str) -> str:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(store, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_id_or_exit(ctx: click.Context, kind: str, ids: list[str], reference: str) -> str:
    """Resolve a full ID or unique ID prefix among ``ids``, or exit."""
    if reference in ids:
        return reference
    matches = [entity_id for entity_id in ids if entity_id.startswith(reference)]
    if len(reference) >= MIN_PREFIX_LENGTH and len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        handle_domain_error(ctx, ValueError(f"{kind.capitalize()} ID prefix '{reference}' is ambiguous"))
    handle_domain_error(ctx, ValueError(f"{kind.capitalize()} {reference} not found"))
