"""
Social Graph Domain Repositories

- UserRecordStore: storage contract for user records and their relationship sets.
  Implementations live in the infrastructure layer.
"""

from .user_record_store import UserRecordStore

__all__ = ["UserRecordStore"]
