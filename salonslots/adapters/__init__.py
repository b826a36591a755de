"""
Adapters layer - Salon data storage and the booking backend API.
"""

from .http_store import HttpSalonStore
from .memory_store import DEFAULT_WEEKLY_HOURS, InMemorySalonStore
from .yaml_store import load_store_from_yaml

__all__ = ["DEFAULT_WEEKLY_HOURS", "HttpSalonStore", "InMemorySalonStore", "load_store_from_yaml"]
