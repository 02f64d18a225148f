"""
MetaChain - Consensus Package
===============================
Snowball: decisione metastabile su un valore tra quelli proposti.
"""

from meta_chain.consensus.snowball import (
    Snowball,
    WeightedSnowball,
    default_tie_key,
)

__all__ = [
    "Snowball",
    "WeightedSnowball",
    "default_tie_key",
]
