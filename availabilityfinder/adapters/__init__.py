"""
Adapters layer - Rule and booking stores backed by files or Supabase.
"""

from .json_store import JsonFileStore
from .records import parse_booking, parse_bookings, parse_rule, parse_rules
from .supabase_store import SupabaseStore

__all__ = [
    "JsonFileStore",
    "SupabaseStore",
    "parse_booking",
    "parse_bookings",
    "parse_rule",
    "parse_rules",
]
