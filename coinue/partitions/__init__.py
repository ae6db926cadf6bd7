"""Per-user partition package."""

from coinue.partitions.manager import PARTITION_TYPES, PartitionManager

__all__ = ["PARTITION_TYPES", "PartitionManager"]
