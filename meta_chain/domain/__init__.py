"""
MetaChain - Domain Package
============================
Ledger core: transazioni, blocchi, chain, mempool, nodo.
"""

# Crypto
from meta_chain.domain.crypto_core import (
    compute_keccak256,
    placeholder_sender,
    NodeIdentity,
)

# Models
from meta_chain.domain.models import (
    Transaction,
    Block,
)

# Chain
from meta_chain.domain.chain import Chain

# Mempool
from meta_chain.domain.mempool import Mempool, compute_mempool_index

# Node
from meta_chain.domain.node import Node


__all__ = [
    "compute_keccak256",
    "placeholder_sender",
    "NodeIdentity",
    "Transaction",
    "Block",
    "Chain",
    "Mempool",
    "compute_mempool_index",
    "Node",
]
