"""Account registry package."""

from coinue.accounts.index import AccountIndex
from coinue.accounts.locking import ReadWriteLock

__all__ = ["AccountIndex", "ReadWriteLock"]
