"""Recurring monthly transfers (mandates)."""

from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from finledger.domain.entities import (
    AccountPatch,
    Mandate,
    MandatePatch,
    Transaction,
    TransactionType,
    new_id,
)
from finledger.domain.errors import NotFoundError, ValidationError, mandate_not_found
from finledger.domain.ledger import LedgerStore
from finledger.logging_config import get_logger

logger = get_logger("mandates")

MANDATE_CATEGORY = "Transfer"


def is_settled(mandate: Mandate, today: date) -> bool:
    """True if the mandate was run or skipped in ``today``'s calendar month."""
    for stamp in (mandate.last_run_date, mandate.last_skipped_date):
        if stamp is not None and (stamp.year, stamp.month) == (today.year, today.month):
            return True
    return False


def is_due_today(mandate: Mandate, today: date) -> bool:
    """True if the mandate is enabled, falls on today, and is not yet settled this month.

    A mandate for day 31 is not due in months with fewer days.
    """
    return mandate.is_enabled and mandate.day_of_month == today.day and not is_settled(mandate, today)


class MandateScheduler:
    """Executes due mandates against a ledger store."""

    def __init__(self, store: LedgerStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock if clock is not None else store.clock

    def _today(self) -> date:
        return self.clock().date()

    def _require(self, mandate_id: str) -> Mandate:
        mandate = self.store.get_mandate(mandate_id)
        if mandate is None:
            raise NotFoundError(mandate_not_found(mandate_id))
        return mandate

    def due_mandates(self, today: Optional[date] = None) -> list[Mandate]:
        today = today or self._today()
        return [mandate for mandate in self.store.mandates if is_due_today(mandate, today)]

    def check_and_run(self, today: Optional[date] = None) -> list[Transaction]:
        """Run every mandate due today, one after another.

        A mandate whose transfer is rejected is logged and left unstamped,
        so it is retried on the next check the same day. Safe to call
        repeatedly: a run stamps the mandate settled for the month.

        Returns:
            Transactions created by this check
        """
        today = today or self._today()
        due = self.due_mandates(today)
        if not due:
            return []

        logger.info("Running %d due mandates", len(due))
        created = []
        for mandate in due:
            try:
                created.append(self.run_mandate(mandate.id, today))
            except ValidationError as e:
                logger.error("Mandate %s (%s) failed: %s", mandate.id, mandate.description, e)
        return created

    def run_mandate(self, mandate_id: str, today: Optional[date] = None) -> Transaction:
        """Execute a mandate now, whether or not it is due.

        Posts the transfer, stamps ``last_run_date`` and counts down the
        remaining EMIs when the destination is a loan.

        Raises:
            NotFoundError: If the mandate does not exist
            ValidationError: If the transfer is rejected
        """
        mandate = self._require(mandate_id)
        today = today or self._today()

        transaction = Transaction(
            id=new_id(),
            account_id=mandate.source_account_id,
            to_account_id=mandate.destination_account_id,
            amount=mandate.amount,
            type=TransactionType.TRANSFER,
            category=MANDATE_CATEGORY,
            date=self.clock(),
            note=f"Mandate: {mandate.description}",
        )
        self.store.add_transaction(transaction)
        self.store.update_mandate(mandate_id, MandatePatch(last_run_date=today))

        destination = self.store.get_account(mandate.destination_account_id)
        if destination is not None and destination.is_loan and destination.loan_details is not None:
            details = destination.loan_details
            if details.emis_left > 0:
                self.store.update_account(
                    destination.id,
                    AccountPatch(loan_details=replace(details, emis_left=details.emis_left - 1)),
                )

        logger.info("Ran mandate %s: %s", mandate_id, mandate.description)
        return transaction

    def skip_mandate(self, mandate_id: str, today: Optional[date] = None) -> Mandate:
        """Mark the mandate settled for this month without moving money."""
        self._require(mandate_id)
        mandate = self.store.update_mandate(mandate_id, MandatePatch(last_skipped_date=today or self._today()))
        logger.info("Skipped mandate %s", mandate_id)
        return mandate
