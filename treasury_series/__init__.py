"""Treasury Series Engine.

Reconstructs day-granular balance, volume and price series for multi-chain
funding projects from already-fetched event logs and balance snapshots, and
values project tokens against the cash-out bonding curve.
"""

__version__ = "0.1.0"
