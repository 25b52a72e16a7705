"""
Declarative base for platform table mappings.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models. Tables belong to the platform; never created here."""
