"""Utility modules for the TaskFlow feedback backend."""

from .slot_store import SlotStore

__all__ = ["SlotStore"]
