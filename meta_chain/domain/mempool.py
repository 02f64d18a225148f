"""
MetaChain - Transaction Mempool
=================================
Pool transazioni pending indicizzate per (tx.id, tip).

Last Updated: 2026-10-17
Version: 1.0.0

Features:
- Upsert per indice
- Rimozione idempotente
- Iterazione deterministica (indice crescente, byte-wise)

L'indice NON è l'id della transazione:
    index = Keccak-256(encode((tx.id, tip_id_or_None)))
quindi cambia a ogni finalizzazione (vedi Node.finalize_block).
"""

from typing import List, Dict, Optional, Iterable, Tuple, Any

from meta_chain.domain.crypto_core import compute_keccak256
from meta_chain.domain.models import Transaction
from meta_chain.errors import InvalidTransactionError
from meta_chain.logging_setup import get_logger
from meta_chain.utils.serialization import BYTES, BYTES_LIKE, OPTIONAL_BYTES, TupleCodec


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("mempool")


# ============================================================================
# INDEX
# ============================================================================

INDEX_CODEC = TupleCodec(BYTES, OPTIONAL_BYTES)


def _normalize_index(index: Any) -> bytes:
    if not isinstance(index, BYTES_LIKE):
        raise InvalidTransactionError(
            f"Mempool index must be bytes, got {type(index).__name__}",
            code="INVALID_MEMPOOL_INDEX"
        )
    return bytes(index)


def compute_mempool_index(tx: Transaction, tip_id: Optional[bytes]) -> bytes:
    """
    Indice mempool di una transazione rispetto al tip corrente.

    Args:
        tx: Transaction
        tip_id: Id del tip della chain (None se vuota)

    Returns:
        bytes: 32-byte index

    Examples:
        >>> tx = Transaction(bytes([0, 1, 2, 3, 4]), 1)
        >>> compute_mempool_index(tx, None).hex()[:8]
        '8368c9bd'
    """
    return compute_keccak256(INDEX_CODEC.encode((tx.id, tip_id)))


# ============================================================================
# MEMPOOL
# ============================================================================

class Mempool:
    """
    Mapping index → Transaction.

    Non applica politiche (dedup per tx.id, limiti, scadenze): sono
    responsabilità del livello superiore.

    Examples:
        >>> mempool = Mempool()
        >>> mempool.all() is None
        True
        >>> mempool.insert(compute_mempool_index(tx, None), tx)
        >>> len(mempool)
        1
    """

    def __init__(self):
        self._entries: Dict[bytes, Transaction] = {}

    def insert(self, index: bytes, tx: Transaction) -> None:
        """
        Inserisci (o sostituisci) transazione per indice.

        Raises:
            InvalidTransactionError: index non bytes o tx non Transaction
        """
        index = _normalize_index(index)
        if not isinstance(tx, Transaction):
            raise InvalidTransactionError(
                f"Expected Transaction, got {type(tx).__name__}",
                code="INVALID_TRANSACTION_TYPE"
            )

        replaced = index in self._entries
        self._entries[index] = tx

        logger.debug(
            "Transaction inserted into mempool",
            extra_data={
                "index": index.hex()[:16] + "...",
                "tx_id": tx.id_hex[:16] + "...",
                "replaced": replaced,
                "mempool_size": len(self._entries),
            }
        )

    def remove(self, indexes: Iterable[bytes]) -> int:
        """
        Rimuovi transazioni per indice.

        Indici assenti sono ignorati (operazione idempotente).

        Returns:
            int: Numero transazioni effettivamente rimosse

        Raises:
            InvalidTransactionError: Un indice non bytes (nessuna rimozione)
        """
        keys = [_normalize_index(index) for index in indexes]

        removed_count = 0
        for key in keys:
            if self._entries.pop(key, None) is not None:
                removed_count += 1

        logger.debug(
            "Transactions removed from mempool",
            extra_data={
                "removed": removed_count,
                "remaining": len(self._entries),
            }
        )
        return removed_count

    def get(self, index: bytes) -> Optional[Transaction]:
        return self._entries.get(_normalize_index(index))

    def all(self) -> Optional[List[Transaction]]:
        """
        Tutte le transazioni in ordine di indice crescente.

        Returns:
            Optional[List[Transaction]]: None se vuoto
        """
        if not self._entries:
            return None
        return [tx for _, tx in self.items()]

    def items(self) -> List[Tuple[bytes, Transaction]]:
        """Coppie (index, tx) ordinate per indice"""
        return sorted(self._entries.items(), key=lambda item: item[0])

    def drain(self) -> List[Transaction]:
        """
        Svuota il mempool restituendo le transazioni (ordinate per indice).

        Usato per ricalcolare gli indici dopo una finalizzazione.
        """
        transactions = [tx for _, tx in self.items()]
        self._entries.clear()
        return transactions

    def clear(self) -> None:
        """Svuota mempool"""
        self._entries.clear()
        logger.debug("Mempool cleared")

    def size(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        """Check se mempool vuoto"""
        return not self._entries

    def get_statistics(self) -> Dict[str, Any]:
        """
        Statistiche mempool.

        Returns:
            dict: count e numero di sender distinti
        """
        return {
            "count": len(self._entries),
            "unique_tx_ids": len({tx.id for tx in self._entries.values()}),
            "unique_senders": len({tx.sender for tx in self._entries.values()}),
        }

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, BYTES_LIKE):
            return False
        return bytes(index) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Mempool(count={len(self._entries)})"


__all__ = [
    "INDEX_CODEC",
    "compute_mempool_index",
    "Mempool",
]
