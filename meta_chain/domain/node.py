"""
MetaChain - Node
==================
Orchestratore: crea transazioni, propone e finalizza blocchi.

Last Updated: 2026-10-17
Version: 1.0.0

Features:
- Ingresso transazioni nel mempool (indice legato al tip)
- Proposta blocco deterministica (pura)
- Finalizzazione con ricalcolo indici del mempool

finalize_block() è l'unica mutazione ammessa dopo una decisione Snowball.
"""

from typing import Optional, Callable, Iterable, Dict, Any

from meta_chain.config import NodeSettings, get_settings
from meta_chain.constants import INITIAL_NONCE
from meta_chain.domain.chain import Chain
from meta_chain.domain.crypto_core import NodeIdentity, placeholder_sender
from meta_chain.domain.mempool import Mempool, compute_mempool_index
from meta_chain.domain.models import Block, Transaction
from meta_chain.errors import InvalidBlockError
from meta_chain.logging_setup import get_logger, PerformanceLogger


SenderSource = Callable[[], bytes]


# ============================================================================
# NODE
# ============================================================================

class Node:
    """
    Nodo ledger.

    Possiede una Chain, un Mempool e il nonce delle transazioni create
    localmente (parte da 1, monotono).

    Sorgente del sender in create_transaction(), in ordine:
    1. identity.sender se è fornita una NodeIdentity
    2. sender_source() se fornita
    3. placeholder (Keccak-256 di un range di byte mescolato)

    Attributes:
        settings: NodeSettings

    Examples:
        >>> node = Node()
        >>> tx = node.create_transaction()
        >>> block = node.propose_block()
        >>> node.finalize_block(block)
        0
    """

    def __init__(
        self,
        settings: Optional[NodeSettings] = None,
        identity: Optional[NodeIdentity] = None,
        sender_source: Optional[SenderSource] = None
    ):
        self.settings = settings or get_settings()
        self.identity = identity
        self._sender_source = sender_source

        self._chain = Chain(self.settings.chain_initial_capacity)
        self._mempool = Mempool()
        self._nonce = INITIAL_NONCE

        self._logger = get_logger("node")
        self._logger.set_context(node_name=self.settings.node_name)

        self._logger.info(
            "Node initialized",
            extra_data={
                "chain_capacity": self.settings.chain_initial_capacity,
                "identity": identity.sender.hex()[:16] + "..." if identity else None,
            }
        )

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def chain(self) -> Chain:
        return self._chain

    @property
    def mempool(self) -> Mempool:
        return self._mempool

    @property
    def nonce(self) -> int:
        return self._nonce

    def tip_id(self) -> Optional[bytes]:
        return self._chain.tip_id()

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def _next_sender(self) -> bytes:
        if self.identity is not None:
            return self.identity.sender
        if self._sender_source is not None:
            return self._sender_source()
        return placeholder_sender()

    def create_transaction(self) -> Transaction:
        """
        Crea transazione locale con il nonce corrente e la inserisce.

        Returns:
            Transaction: Transazione creata
        """
        tx = Transaction(sender=self._next_sender(), nonce=self._nonce)
        self.add_transaction(tx)
        self._nonce += 1
        return tx

    def transaction_index(self, tx: Transaction) -> bytes:
        """Indice mempool di tx rispetto al tip corrente"""
        return compute_mempool_index(tx, self._chain.tip_id())

    def add_transaction(self, tx: Transaction) -> bytes:
        """
        Inserisci transazione nel mempool.

        Returns:
            bytes: Indice assegnato
        """
        index = self.transaction_index(tx)
        self._mempool.insert(index, tx)
        return index

    def add_transactions(self, transactions: Iterable[Transaction]) -> int:
        """
        Inserisci più transazioni.

        Returns:
            int: Numero transazioni inserite
        """
        count = 0
        for tx in transactions:
            self.add_transaction(tx)
            count += 1
        return count

    # ========================================================================
    # BLOCKS
    # ========================================================================

    def propose_block(self) -> Optional[Block]:
        """
        Blocco candidato con tutte le transazioni pending.

        Non modifica lo stato del nodo.

        Returns:
            Optional[Block]: None se il mempool è vuoto
        """
        transactions = self._mempool.all()
        if transactions is None:
            return None
        return Block(transactions, self._chain.tip_id())

    def finalize_block(self, block: Block) -> int:
        """
        Aggiungi blocco deciso alla chain e riallinea il mempool.

        Steps:
            1. Indici correnti delle transazioni del blocco
            2. Chain.append (il predecessore può essere ricollegato:
               block.id non è stabile attraverso questa chiamata)
            3. Rimozione degli indici dal mempool
            4. Ricalcolo indici delle transazioni rimaste rispetto al nuovo tip

        Returns:
            int: Nuova height

        Raises:
            InvalidBlockError: block non è un Block
            BlockFrozenError: Blocco già aggiunto a una chain
        """
        if not isinstance(block, Block):
            raise InvalidBlockError(
                f"Expected Block, got {type(block).__name__}",
                code="INVALID_BLOCK_TYPE"
            )

        with PerformanceLogger(self._logger, "finalize_block"):
            indexes = [self.transaction_index(tx) for tx in block.transactions]

            height = self._chain.append(block)

            removed = self._mempool.remove(indexes)

            pending = self._mempool.drain()
            for tx in pending:
                self.add_transaction(tx)

        self._logger.info(
            "Block finalized",
            extra_data={
                "height": height,
                "block_id": block.id_hex[:16] + "...",
                "tx_count": block.get_transaction_count(),
                "removed": removed,
                "rebound": len(pending),
            }
        )
        return height

    # ========================================================================
    # STATUS
    # ========================================================================

    def get_status(self) -> Dict[str, Any]:
        """
        Riepilogo stato nodo.

        Returns:
            dict: node_name, height, tip, nonce, mempool
        """
        tip_id = self._chain.tip_id()
        return {
            "node_name": self.settings.node_name,
            "height": self._chain.height(),
            "tip_id": tip_id.hex() if tip_id is not None else None,
            "nonce": self._nonce,
            "mempool_size": len(self._mempool),
        }

    def __repr__(self) -> str:
        return (
            f"Node(name={self.settings.node_name}, "
            f"height={self._chain.height()}, "
            f"mempool={len(self._mempool)})"
        )


__all__ = [
    "Node",
    "SenderSource",
]
