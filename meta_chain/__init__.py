"""
MetaChain - Snowball Consensus & Ledger Core
==============================================
Transazioni e blocchi content-addressed (Keccak-256), chain append-only,
mempool con indici legati al tip e consenso Snowball.

Version: 1.0.0
Author: MetaChain Team
License: MIT
"""

from meta_chain.version import __version__

__author__ = "MetaChain Team"
__license__ = "MIT"

# Core imports
from meta_chain.domain.models import Transaction, Block
from meta_chain.domain.chain import Chain
from meta_chain.domain.mempool import Mempool, compute_mempool_index
from meta_chain.domain.node import Node
from meta_chain.domain.crypto_core import compute_keccak256, NodeIdentity
from meta_chain.config import NodeSettings, get_settings

# Consensus
from meta_chain.consensus.snowball import Snowball, WeightedSnowball

# Logging
from meta_chain.logging_setup import setup_logging, get_logger

__all__ = [
    # Version
    "__version__",

    # Core
    "Transaction",
    "Block",
    "Chain",
    "Mempool",
    "compute_mempool_index",
    "Node",
    "compute_keccak256",
    "NodeIdentity",
    "NodeSettings",
    "get_settings",

    # Consensus
    "Snowball",
    "WeightedSnowball",

    # Logging
    "setup_logging",
    "get_logger",
]
