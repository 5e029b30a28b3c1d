"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_date, period_bounds
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.logging_config import setup_logging

__all__ = ["parse_date", "period_bounds", "parse_amount", "setup_logging"]
