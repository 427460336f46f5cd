"""Utility functions for propcommand."""

from propcommand.utils.date_parser import parse_date, parse_month, month_of
from propcommand.utils.amount_parser import parse_amount
from propcommand.utils.ids import generate_id, utc_now

__all__ = ["parse_date", "parse_month", "month_of", "parse_amount", "generate_id", "utc_now"]
