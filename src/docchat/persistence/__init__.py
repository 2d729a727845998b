"""Durable store contract and the in-memory implementation."""

from __future__ import annotations

from docchat.persistence.memory_backend import MemoryDurableStore
from docchat.persistence.protocols import IDurableStore

__all__ = ["IDurableStore", "MemoryDurableStore"]
