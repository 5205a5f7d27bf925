"""Persistence stores for seeding."""

from keyhub_seed.store.base import Reader, Store, UnitOfWork
from keyhub_seed.store.memory import MemoryStore
from keyhub_seed.store.postgres import PostgresStore

__all__ = ["Reader", "Store", "UnitOfWork", "MemoryStore", "PostgresStore"]
