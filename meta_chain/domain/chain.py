"""
MetaChain - Chain
===================
Sequenza append-only di blocchi collegati per id.

Last Updated: 2026-10-17
Version: 1.0.0

Invarianti:
- blocks[0].prev_block_id is None
- blocks[i].prev_block_id == blocks[i-1].id per ogni i > 0
- Append-only: nessuna rimozione o riordino
- height = len - 1 (None se vuota)

La chain è l'unica autorità sul collegamento: append() sovrascrive
qualunque prev_block_id preparato dal chiamante.
"""

from __future__ import annotations
from typing import Optional, List, Dict, Any, Iterator

from meta_chain.constants import DEFAULT_CHAIN_CAPACITY
from meta_chain.domain.models import Block
from meta_chain.errors import BlockFrozenError, InvalidBlockError, InvalidConfigError
from meta_chain.logging_setup import get_logger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("chain")


# ============================================================================
# CHAIN CLASS
# ============================================================================

class Chain:
    """
    Chain in memoria.

    Attributes:
        init_capacity: Capacità dichiarata alla creazione (solo informativa)

    Examples:
        >>> chain = Chain()
        >>> chain.height() is None
        True
        >>> chain.append(Block([]))
        0
        >>> chain.last().prev_block_id is None
        True
    """

    def __init__(self, init_capacity: int = DEFAULT_CHAIN_CAPACITY):
        if isinstance(init_capacity, bool) or not isinstance(init_capacity, int) or init_capacity < 0:
            raise InvalidConfigError(
                f"init_capacity must be a non-negative int, got {init_capacity!r}",
                code="INVALID_CHAIN_CAPACITY"
            )

        self.init_capacity = init_capacity
        self._blocks: List[Block] = []

    # ========================================================================
    # BLOCK OPERATIONS
    # ========================================================================

    def append(self, block: Block) -> int:
        """
        Aggiungi blocco in coda.

        Il predecessore viene ricollegato al tip corrente (None se vuota),
        l'id ricalcolato e il blocco congelato.

        Args:
            block: Block non ancora aggiunto ad alcuna chain

        Returns:
            int: Height del blocco appena aggiunto

        Raises:
            BlockFrozenError: Blocco già congelato
            InvalidBlockError: Oggetto non Block
        """
        if not isinstance(block, Block):
            raise InvalidBlockError(
                f"Expected Block, got {type(block).__name__}",
                code="INVALID_BLOCK_TYPE"
            )
        if block.is_frozen:
            raise BlockFrozenError(
                "Block already appended to a chain",
                code="BLOCK_FROZEN",
                details={"block_id": block.id_hex}
            )

        block.set_prev_block_id(self.tip_id())
        block.freeze()
        self._blocks.append(block)

        height = len(self._blocks) - 1
        logger.info(
            "Block appended",
            extra_data={
                "height": height,
                "block_id": block.id_hex[:16] + "...",
                "tx_count": block.get_transaction_count(),
            }
        )
        return height

    # ========================================================================
    # QUERIES
    # ========================================================================

    def height(self) -> Optional[int]:
        """Height del tip, None se vuota"""
        if not self._blocks:
            return None
        return len(self._blocks) - 1

    def get(self, index: int) -> Optional[Block]:
        """
        Blocco per posizione (bounds-safe).

        Indici negativi o oltre la fine restituiscono None.
        """
        if 0 <= index < len(self._blocks):
            return self._blocks[index]
        return None

    def last(self) -> Optional[Block]:
        return self._blocks[-1] if self._blocks else None

    def tip_id(self) -> Optional[bytes]:
        """Id del tip, None se vuota"""
        tip = self.last()
        return tip.id if tip is not None else None

    def get_block_by_id(self, block_id: bytes) -> Optional[Block]:
        """
        Ottieni blocco per id.

        Performance:
            O(n) - scansione lineare chain
        """
        for block in self._blocks:
            if block.id == block_id:
                return block
        return None

    def is_empty(self) -> bool:
        return not self._blocks

    def verify_linkage(self) -> bool:
        """
        Ricontrolla collegamento e id di tutti i blocchi.

        Returns:
            bool: True se tutte le invarianti sono rispettate
        """
        prev_id: Optional[bytes] = None
        for height, block in enumerate(self._blocks):
            if block.prev_block_id != prev_id:
                logger.warning(
                    "Chain linkage broken",
                    extra_data={"height": height, "block_id": block.id_hex[:16] + "..."}
                )
                return False
            if Block.compute_id(block.transactions, block.prev_block_id) != block.id:
                logger.warning(
                    "Block id mismatch",
                    extra_data={"height": height, "block_id": block.id_hex[:16] + "..."}
                )
                return False
            prev_id = block.id
        return True

    def get_statistics(self) -> Dict[str, Any]:
        """Statistiche chain"""
        tip_id = self.tip_id()
        return {
            "height": self.height(),
            "total_blocks": len(self._blocks),
            "total_transactions": sum(b.get_transaction_count() for b in self._blocks),
            "tip_id": tip_id.hex() if tip_id is not None else None,
        }

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __repr__(self) -> str:
        return f"Chain(height={self.height()}, blocks={len(self._blocks)})"


__all__ = [
    "Chain",
]
