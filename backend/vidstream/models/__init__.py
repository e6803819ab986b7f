"""
SQLAlchemy ORM Models

Local client state tables.
"""
from vidstream.models.key_value import KeyValueEntry

__all__ = [
    "KeyValueEntry",
]
