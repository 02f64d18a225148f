"""
MetaChain - Pytest Configuration
==================================
Fixtures e configurazione per testing.

Last Updated: 2026-10-17
Version: 1.0.0
"""

import random

import pytest

# Internal imports
from meta_chain.config import override_settings
from meta_chain.consensus.snowball import Snowball, WeightedSnowball
from meta_chain.domain.chain import Chain
from meta_chain.domain.mempool import Mempool
from meta_chain.domain.models import Transaction
from meta_chain.domain.node import Node


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def test_config():
    """Test configuration"""
    return override_settings(
        node_name="TestNode",
        chain_initial_capacity=16,
        snowball_sample_size=5,
        snowball_quorum_size=4,
        snowball_decision_threshold=3,
        log_level="DEBUG",
        log_format="text",
        log_to_file=False,
    )


# ============================================================================
# LEDGER FIXTURES
# ============================================================================

@pytest.fixture
def sender_a():
    """Sender [0, 1, 2, 3, 4]"""
    return bytes([0, 1, 2, 3, 4])


@pytest.fixture
def sender_b():
    """Sender [5, 6, 7, 8, 9]"""
    return bytes([5, 6, 7, 8, 9])


@pytest.fixture
def tx_1(sender_a):
    """T1 = (sender=[0..4], nonce=1)"""
    return Transaction(sender_a, 1)


@pytest.fixture
def tx_2(sender_a):
    """T2 = (sender=[0..4], nonce=2)"""
    return Transaction(sender_a, 2)


@pytest.fixture
def tx_3(sender_b):
    """T3 = (sender=[5..9], nonce=1)"""
    return Transaction(sender_b, 1)


@pytest.fixture
def chain():
    """Chain vuota"""
    return Chain(init_capacity=16)


@pytest.fixture
def mempool():
    """Mempool vuoto"""
    return Mempool()


@pytest.fixture
def seeded_sender_source():
    """Sender deterministici (placeholder con RNG seedato)"""
    from meta_chain.domain.crypto_core import placeholder_sender

    rng = random.Random(1234)
    return lambda: placeholder_sender(rng)


@pytest.fixture
def node(test_config, seeded_sender_source):
    """Node con chain e mempool vuoti"""
    return Node(settings=test_config, sender_source=seeded_sender_source)


# ============================================================================
# CONSENSUS FIXTURES
# ============================================================================

@pytest.fixture
def snowball():
    """Snowball k=5, alpha=4, beta=3"""
    return Snowball(sample_size=5, quorum_size=4, decision_threshold=3)


@pytest.fixture
def weighted_snowball():
    """WeightedSnowball k=5, alpha=4, beta=3"""
    return WeightedSnowball(sample_size=5, quorum_size=4, decision_threshold=3)
