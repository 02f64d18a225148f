"""
MetaChain - Core Domain Models
================================
Strutture dati del ledger: transazioni e blocchi content-addressed.

Last Updated: 2026-10-17
Version: 1.0.0

Models:
- Transaction: record immutabile {sender, nonce} con id derivato
- Block: sequenza ordinata di transazioni collegata al predecessore

Identità:
- Transaction.id = Keccak-256(encode((sender, nonce)))
- Block.id = Keccak-256(encode((transactions, prev_block_id)))

Un Block resta modificabile (solo predecessore) finché non viene
aggiunto a una Chain, che lo congela.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable, Tuple

from meta_chain.constants import U64_MAX
from meta_chain.domain.crypto_core import compute_keccak256
from meta_chain.errors import (
    BlockFrozenError,
    CorruptedBlockError,
    CorruptedTransactionError,
    InvalidBlockError,
    InvalidTransactionError,
)
from meta_chain.utils.serialization import (
    BYTES,
    BYTES_LIKE,
    OPTIONAL_BYTES,
    U64,
    BinaryReader,
    Codec,
    SequenceCodec,
    TupleCodec,
    bytes_to_hex,
    hex_to_bytes,
)


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Transazione ledger.

    Il sender è una sequenza di byte opaca (tipicamente l'hash di una
    public key): il core non ne verifica il contenuto.

    Attributes:
        sender (bytes): Mittente opaco
        nonce (int): u64 per disambiguare transazioni dello stesso sender
        id (bytes): Keccak-256 di (sender, nonce), calcolato alla creazione

    Examples:
        >>> tx = Transaction(sender=bytes([1, 2, 3, 4, 5]), nonce=42)
        >>> tx.id.hex()[:16]
        'f2ad4f3e9540222b'
    """

    sender: bytes
    nonce: int
    id: bytes = field(init=False)

    def __post_init__(self):
        """Validazione tipi e derivazione id"""
        if not isinstance(self.sender, BYTES_LIKE):
            raise InvalidTransactionError(
                f"sender must be bytes, got {type(self.sender).__name__}",
                code="INVALID_SENDER_TYPE"
            )

        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int):
            raise InvalidTransactionError(
                f"nonce must be int, got {type(self.nonce).__name__}",
                code="INVALID_NONCE_TYPE"
            )

        if not 0 <= self.nonce <= U64_MAX:
            raise InvalidTransactionError(
                f"nonce out of u64 range: {self.nonce}",
                code="NONCE_OUT_OF_RANGE",
                details={"nonce": self.nonce}
            )

        # frozen: assegnazioni via object.__setattr__
        object.__setattr__(self, "sender", bytes(self.sender))
        object.__setattr__(self, "id", self.compute_id(self.sender, self.nonce))

    @classmethod
    def new(cls, sender: bytes, nonce: int) -> Transaction:
        """Crea transazione calcolando l'id"""
        return cls(sender=sender, nonce=nonce)

    @staticmethod
    def serialize_payload(sender: bytes, nonce: int) -> bytes:
        """
        Encoding di (sender, nonce): input dell'hash dell'id.

        Examples:
            >>> Transaction.serialize_payload(bytes([0, 1, 2, 3, 4]), 42).hex()
            '050000000000000000010203042a00000000000000'
        """
        return TRANSACTION_PAYLOAD.encode((sender, nonce))

    @staticmethod
    def compute_id(sender: bytes, nonce: int) -> bytes:
        """Keccak-256 del payload (sender, nonce)"""
        return compute_keccak256(Transaction.serialize_payload(sender, nonce))

    @property
    def id_hex(self) -> str:
        return self.id.hex()

    def encode(self) -> bytes:
        """Encoding del record completo (id, sender, nonce)"""
        return TRANSACTION_CODEC.encode(self)

    @classmethod
    def decode(cls, data: bytes) -> Transaction:
        """
        Decodifica record completo e verifica l'id.

        Raises:
            DecodeError: Input malformato
            CorruptedTransactionError: id salvato diverso da quello ricalcolato
        """
        return TRANSACTION_CODEC.decode(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serializza in dict (campi binari in hex)"""
        return {
            "id": self.id_hex,
            "sender": bytes_to_hex(self.sender),
            "nonce": self.nonce,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Transaction:
        """
        Deserializza da dict. Se presente, l'id viene verificato.

        Raises:
            CorruptedTransactionError: id non coerente
        """
        tx = cls(sender=hex_to_bytes(data["sender"]), nonce=data["nonce"])
        stored_id = data.get("id")
        if stored_id is not None and hex_to_bytes(stored_id) != tx.id:
            raise CorruptedTransactionError(
                "Transaction id mismatch",
                code="TX_ID_MISMATCH",
                details={"stored": stored_id, "computed": tx.id_hex}
            )
        return tx

    def __repr__(self) -> str:
        return f"Transaction(id={self.id_hex[:16]}..., nonce={self.nonce})"


class _TransactionCodec(Codec):
    """Record transazione (id, sender, nonce) con verifica dell'id in lettura."""

    def write(self, value: Transaction, out: bytearray) -> None:
        if not isinstance(value, Transaction):
            raise InvalidBlockError(
                f"Expected Transaction, got {type(value).__name__}",
                code="INVALID_TRANSACTION_TYPE"
            )
        BYTES.write(value.id, out)
        BYTES.write(value.sender, out)
        U64.write(value.nonce, out)

    def read(self, reader: BinaryReader) -> Transaction:
        offset = reader.offset
        stored_id = BYTES.read(reader)
        sender = BYTES.read(reader)
        nonce = U64.read(reader)

        tx = Transaction(sender=sender, nonce=nonce)
        if tx.id != stored_id:
            raise CorruptedTransactionError(
                "Transaction id mismatch",
                code="TX_ID_MISMATCH",
                details={
                    "offset": offset,
                    "stored": stored_id.hex(),
                    "computed": tx.id_hex,
                }
            )
        return tx


TRANSACTION_PAYLOAD = TupleCodec(BYTES, U64)
TRANSACTION_CODEC = _TransactionCodec()


# ============================================================================
# BLOCK
# ============================================================================

BLOCK_PAYLOAD = TupleCodec(SequenceCodec(TRANSACTION_CODEC), OPTIONAL_BYTES)
BLOCK_CODEC = TupleCodec(BYTES, SequenceCodec(TRANSACTION_CODEC), OPTIONAL_BYTES)


def _normalize_transactions(transactions: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    if isinstance(transactions, (str, bytes, bytearray, memoryview)):
        raise InvalidBlockError(
            "transactions must be an iterable of Transaction",
            code="INVALID_TRANSACTIONS"
        )
    try:
        items = tuple(transactions)
    except TypeError as e:
        raise InvalidBlockError(
            f"transactions must be iterable: {e}",
            code="INVALID_TRANSACTIONS"
        ) from e

    for position, tx in enumerate(items):
        if not isinstance(tx, Transaction):
            raise InvalidBlockError(
                f"Expected Transaction at position {position}, got {type(tx).__name__}",
                code="INVALID_TRANSACTION_TYPE",
                details={"position": position}
            )
    return items


def _normalize_prev(prev_block_id: Optional[bytes]) -> Optional[bytes]:
    if prev_block_id is None:
        return None
    if not isinstance(prev_block_id, BYTES_LIKE):
        raise InvalidBlockError(
            f"prev_block_id must be bytes or None, got {type(prev_block_id).__name__}",
            code="INVALID_PREV_BLOCK_ID"
        )
    return bytes(prev_block_id)


class Block:
    """
    Blocco: transazioni ordinate + id del predecessore.

    L'ordine delle transazioni è significativo: l'id dipende da esso.
    Il predecessore può essere cambiato con set_prev_block_id() finché il
    blocco non viene congelato da Chain.append().

    Attributes:
        id (bytes): Keccak-256 di (transactions, prev_block_id)
        transactions (tuple): Transazioni in ordine
        prev_block_id (Optional[bytes]): Id del predecessore (None = primo blocco)

    Examples:
        >>> tx = Transaction(bytes([0, 1, 2, 3, 4]), 1)
        >>> block = Block([tx])
        >>> block.id.hex()[:8]
        '3d4cad20'
        >>> block.set_prev_block_id(bytes([1, 2, 3, 4]))
        >>> block.id.hex()[:8]
        '89b8c48c'
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        prev_block_id: Optional[bytes] = None
    ):
        self._transactions = _normalize_transactions(transactions)
        self._prev_block_id = _normalize_prev(prev_block_id)
        self._id = self.compute_id(self._transactions, self._prev_block_id)
        self._frozen = False

    @classmethod
    def new(
        cls,
        transactions: Iterable[Transaction],
        prev_block_id: Optional[bytes] = None
    ) -> Block:
        """Crea blocco derivando l'id"""
        return cls(transactions, prev_block_id)

    # ========================================================================
    # ACCESSORS
    # ========================================================================

    @property
    def id(self) -> bytes:
        return self._id

    @property
    def id_hex(self) -> str:
        return self._id.hex()

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    @property
    def prev_block_id(self) -> Optional[bytes]:
        return self._prev_block_id

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ========================================================================
    # MUTATION (solo prima dell'append)
    # ========================================================================

    def set_prev_block_id(self, prev_block_id: Optional[bytes]) -> None:
        """
        Sostituisce il predecessore e ricalcola l'id.

        Raises:
            BlockFrozenError: Blocco già aggiunto a una chain
            InvalidBlockError: prev_block_id non è bytes/None
        """
        if self._frozen:
            raise BlockFrozenError(
                "Cannot change predecessor of a block already appended to a chain",
                code="BLOCK_FROZEN",
                details={"block_id": self.id_hex}
            )
        self._prev_block_id = _normalize_prev(prev_block_id)
        self._id = self.compute_id(self._transactions, self._prev_block_id)

    def freeze(self) -> None:
        """Rende il blocco immutabile (idempotente)"""
        self._frozen = True

    def copy(self) -> Block:
        """Copia non congelata con lo stesso contenuto"""
        return Block(self._transactions, self._prev_block_id)

    # ========================================================================
    # IDENTITY & ENCODING
    # ========================================================================

    @staticmethod
    def serialize_payload(
        transactions: Iterable[Transaction],
        prev_block_id: Optional[bytes]
    ) -> bytes:
        """Encoding di (transactions, prev_block_id): input dell'hash dell'id"""
        return BLOCK_PAYLOAD.encode(
            (_normalize_transactions(transactions), _normalize_prev(prev_block_id))
        )

    @staticmethod
    def compute_id(
        transactions: Iterable[Transaction],
        prev_block_id: Optional[bytes]
    ) -> bytes:
        return compute_keccak256(Block.serialize_payload(transactions, prev_block_id))

    @classmethod
    def from_payload(cls, data: bytes) -> Block:
        """
        Ricostruisce un blocco dal payload (transactions, prev_block_id).

        Raises:
            DecodeError: Input malformato
            CorruptedTransactionError: Transazione con id non coerente
        """
        transactions, prev_block_id = BLOCK_PAYLOAD.decode(data)
        return cls(transactions, prev_block_id)

    def encode(self) -> bytes:
        """Encoding del record completo (id, transactions, prev_block_id)"""
        return BLOCK_CODEC.encode((self._id, self._transactions, self._prev_block_id))

    @classmethod
    def decode(cls, data: bytes) -> Block:
        """
        Decodifica record completo e verifica l'id.

        Raises:
            DecodeError: Input malformato
            CorruptedTransactionError: Transazione con id non coerente
            CorruptedBlockError: id salvato diverso da quello ricalcolato
        """
        stored_id, transactions, prev_block_id = BLOCK_CODEC.decode(data)
        block = cls(transactions, prev_block_id)
        if block.id != stored_id:
            raise CorruptedBlockError(
                "Block id mismatch",
                code="BLOCK_ID_MISMATCH",
                details={"stored": stored_id.hex(), "computed": block.id_hex}
            )
        return block

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_transaction_count(self) -> int:
        """Numero transazioni nel blocco"""
        return len(self._transactions)

    def contains_transaction(self, tx_id: bytes) -> bool:
        """
        Check se blocco contiene transazione.

        Args:
            tx_id: Transaction id (32 byte)

        Returns:
            bool: True se presente
        """
        return any(tx.id == tx_id for tx in self._transactions)

    def to_dict(self) -> Dict[str, Any]:
        """Serializza block in dict"""
        return {
            "id": self.id_hex,
            "transactions": [tx.to_dict() for tx in self._transactions],
            "prev_block_id": bytes_to_hex(self._prev_block_id),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Block:
        """
        Deserializza block da dict (non congelato).

        Raises:
            CorruptedBlockError: id presente e non coerente
        """
        block = cls(
            [Transaction.from_dict(tx_data) for tx_data in data["transactions"]],
            hex_to_bytes(data.get("prev_block_id")),
        )
        stored_id = data.get("id")
        if stored_id is not None and hex_to_bytes(stored_id) != block.id:
            raise CorruptedBlockError(
                "Block id mismatch",
                code="BLOCK_ID_MISMATCH",
                details={"stored": stored_id, "computed": block.id_hex}
            )
        return block

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return (
            self._id == other._id
            and self._transactions == other._transactions
            and self._prev_block_id == other._prev_block_id
        )

    __hash__ = None

    def __repr__(self) -> str:
        prev = self._prev_block_id.hex()[:16] if self._prev_block_id is not None else None
        return (
            f"Block(id={self.id_hex[:16]}..., "
            f"prev={prev}, "
            f"txs={len(self._transactions)}, "
            f"frozen={self._frozen})"
        )


__all__ = [
    "Transaction",
    "Block",
    "TRANSACTION_PAYLOAD",
    "TRANSACTION_CODEC",
    "BLOCK_PAYLOAD",
    "BLOCK_CODEC",
]
