"""Utility functions for finledger."""

from finledger.utils.date_parser import parse_date, parse_datetime
from finledger.utils.amount_parser import parse_amount
from finledger.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_datetime", "parse_amount", "resolve_account"]
