"""
Service layer helpers that orchestrate stores and domain logic.
"""

from .availability_service import AvailabilityService, BookingStoreProtocol, RuleStoreProtocol
from .expansion_cache import ExpansionCache

__all__ = ["AvailabilityService", "BookingStoreProtocol", "RuleStoreProtocol", "ExpansionCache"]
