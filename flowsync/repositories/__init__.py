"""
Repositories

Async data access for the platform tables touched by the bootstrap path.
"""

from flowsync.repositories.base import BaseRepository
from flowsync.repositories.credentials import CredentialRepository
from flowsync.repositories.users import UserRepository

__all__ = [
    "BaseRepository",
    "CredentialRepository",
    "UserRepository",
]
