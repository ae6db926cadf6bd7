"""
Coinue - User Data Package

Per-user data persistence and export for the Coinue personal finance
desktop tool: the account registry, per-user data partitions and the
CSV export compiler.

DESIGN PRINCIPLES:
1. Components are constructed explicitly and injected (no singletons)
2. Fail early, fail visibly
3. Results, not exceptions, cross component boundaries
4. A file on disk is either the old version or the new one, never half
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Coinue Team"
