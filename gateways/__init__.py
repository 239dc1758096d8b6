"""Slot gateway implementations."""

from .snapshot import Snapshot, SnapshotGateway

__all__ = ["Snapshot", "SnapshotGateway"]
