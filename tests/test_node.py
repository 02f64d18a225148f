"""
MetaChain - Node Tests
========================
Unit tests for node orchestration: proposal, finalization, rebinding.
"""

import pytest

from meta_chain.domain.crypto_core import NodeIdentity
from meta_chain.domain.mempool import compute_mempool_index
from meta_chain.domain.models import Block, Transaction
from meta_chain.domain.node import Node
from meta_chain.errors import BlockFrozenError, InvalidBlockError


INDEX_NO_TIP = bytes([
    131, 104, 201, 189, 46, 213, 139, 247, 167, 5, 96, 68, 185, 137, 240, 74,
    88, 236, 236, 163, 205, 63, 31, 84, 42, 72, 102, 49, 96, 111, 237, 138,
])

INDEX_AFTER_BLOCK = bytes([
    207, 58, 24, 227, 9, 92, 25, 41, 58, 138, 229, 70, 116, 80, 222, 43,
    52, 244, 40, 144, 108, 8, 75, 38, 81, 216, 33, 89, 84, 248, 102, 53,
])


class TestNodeTransactions:
    """Test transaction intake"""

    def test_new_node(self, node):
        """Test initial state"""
        assert node.mempool.all() is None
        assert node.chain.height() is None
        assert node.nonce == 1
        assert node.tip_id() is None

    def test_default_settings(self):
        """Test Node() without explicit settings"""
        assert Node().chain.init_capacity == Node().settings.chain_initial_capacity

    def test_create_transaction(self, node):
        """Test create_transaction increments nonce"""
        tx = node.create_transaction()

        assert len(node.mempool) == 1
        assert node.nonce == 2
        assert tx.nonce == 1
        assert len(tx.sender) == 32

    def test_create_transaction_with_identity(self, test_config):
        """Test sender from NodeIdentity"""
        identity = NodeIdentity.from_private_value(424242)
        node = Node(settings=test_config, identity=identity)

        first = node.create_transaction()
        second = node.create_transaction()

        assert first.sender == identity.sender
        assert second.sender == identity.sender
        assert first.id != second.id

    def test_create_transaction_with_sender_source(self, test_config, sender_a):
        """Test caller-supplied sender source"""
        node = Node(settings=test_config, sender_source=lambda: sender_a)
        tx = node.create_transaction()

        assert tx == Transaction(sender_a, 1)

    def test_add_transaction(self, node, tx_1):
        """Test add_transaction does not touch nonce"""
        index = node.add_transaction(tx_1)

        assert index == INDEX_NO_TIP
        assert len(node.mempool) == 1
        assert node.nonce == 1

    def test_add_transactions(self, node, tx_1, tx_3):
        """Test bulk add"""
        assert node.add_transactions([tx_1, tx_3]) == 2
        assert len(node.mempool) == 2
        assert node.nonce == 1


class TestNodeBlocks:
    """Test proposal and finalization"""

    def test_propose_empty(self, node):
        """Test proposal on empty mempool"""
        assert node.propose_block() is None

    def test_propose_is_pure(self, node):
        """Test proposal does not mutate state"""
        node.create_transaction()
        first = node.propose_block()
        second = node.propose_block()

        assert first == second
        assert len(node.mempool) == 1
        assert node.chain.height() is None

    def test_propose_uses_index_order(self, node, tx_1, tx_2, tx_3):
        """Test block transactions follow mempool order"""
        node.add_transactions([tx_1, tx_2, tx_3])
        block = node.propose_block()

        assert list(block.transactions) == node.mempool.all()
        assert block.prev_block_id is None

    def test_finalize_single_block(self, node):
        """Test finalize empties mempool"""
        node.create_transaction()
        block = node.propose_block()

        assert node.finalize_block(block) == 0
        assert node.chain.last() == block
        assert node.mempool.all() is None

    def test_finalize_keeps_pending(self, node):
        """Test transactions created after proposal survive"""
        node.create_transaction()
        block = node.propose_block()
        node.create_transaction()
        node.create_transaction()

        node.finalize_block(block)

        assert node.chain.height() == 0
        assert len(node.mempool) == 2

    def test_finalize_rebinds_indexes(self, node, tx_1, tx_3):
        """Test surviving entries are re-indexed against the new tip"""
        node.add_transaction(tx_1)
        block = node.propose_block()
        node.add_transaction(tx_3)

        node.finalize_block(block)

        tip = node.tip_id()
        assert [index for index, _ in node.mempool.items()] == [compute_mempool_index(tx_3, tip)]
        assert node.transaction_index(tx_3) in node.mempool

    def test_index_rebinding_literal(self, node, tx_1):
        """Test index of T before and after Block([T], None)"""
        assert node.add_transaction(tx_1) == INDEX_NO_TIP

        node.finalize_block(Block([tx_1], None))

        assert node.transaction_index(tx_1) == INDEX_AFTER_BLOCK

    def test_finalize_relinks_stale_proposal(self, node):
        """Test a proposal built on an old tip is relinked on append"""
        node.create_transaction()
        stale = node.propose_block()
        node.finalize_block(stale.copy())

        node.finalize_block(stale)

        assert node.chain.height() == 1
        assert stale.prev_block_id == node.chain.get(0).id
        assert node.chain.verify_linkage()

    def test_finalize_frozen_block(self, node):
        """Test finalizing the same block twice"""
        node.create_transaction()
        block = node.propose_block()
        node.finalize_block(block)
        node.create_transaction()

        with pytest.raises(BlockFrozenError):
            node.finalize_block(block)
        assert node.chain.height() == 0
        assert len(node.mempool) == 1

    def test_finalize_rejects_non_block(self, node):
        """Test finalize_block type check"""
        node.create_transaction()

        with pytest.raises(InvalidBlockError) as exc_info:
            node.finalize_block(None)
        assert exc_info.value.code == "INVALID_BLOCK_TYPE"
        assert node.chain.height() is None
        assert len(node.mempool) == 1

    def test_two_round_scenario(self, node):
        """Test heights 0 and 1 with linked predecessor"""
        node.create_transaction()
        b1 = node.propose_block()
        assert b1.get_transaction_count() == 1
        assert b1.prev_block_id is None
        node.finalize_block(b1)
        assert node.chain.height() == 0

        node.create_transaction()
        node.create_transaction()
        b2 = node.propose_block()
        node.finalize_block(b2)

        assert node.chain.height() == 1
        assert b2.prev_block_id == b1.id
        assert node.mempool.is_empty()

    def test_lifecycle(self, node, sender_a, sender_b):
        """Test four rounds including transactions added mid-round"""
        # 1st round
        node.create_transaction()
        first = node.propose_block()
        node.finalize_block(first)
        assert first.get_transaction_count() == 1
        assert node.chain.get(0) == first
        assert len(node.mempool) == 0

        # 2nd round
        node.create_transaction()
        node.create_transaction()
        second = node.propose_block()
        node.finalize_block(second)
        assert second.get_transaction_count() == 2
        assert second.prev_block_id == first.id
        assert node.chain.height() == 1
        assert len(node.mempool) == 0

        # 3rd round: 2 transactions arrive between proposal and finalization
        for _ in range(3):
            node.create_transaction()
        third = node.propose_block()
        node.create_transaction()
        node.create_transaction()
        node.finalize_block(third)
        assert third.get_transaction_count() == 3
        assert third.prev_block_id == second.id
        assert node.chain.height() == 2
        assert len(node.mempool) == 2

        # 4th round: external transactions join the leftovers
        node.add_transactions([Transaction(sender_a, 1), Transaction(sender_b, 1)])
        fourth = node.propose_block()
        node.finalize_block(fourth)
        assert fourth.get_transaction_count() == 4
        assert fourth.prev_block_id == third.id
        assert node.chain.get(3) == fourth
        assert node.chain.height() == 3
        assert len(node.mempool) == 0
        assert node.chain.verify_linkage()

    def test_status(self, node):
        """Test get_status"""
        node.create_transaction()
        node.finalize_block(node.propose_block())
        status = node.get_status()

        assert status["node_name"] == "TestNode"
        assert status["height"] == 0
        assert status["nonce"] == 2
        assert status["mempool_size"] == 0
        assert status["tip_id"] == node.tip_id().hex()
