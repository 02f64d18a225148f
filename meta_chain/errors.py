"""
MetaChain - Custom Exceptions
===============================
Gerarchia di eccezioni per ledger core e consensus.

Last Updated: 2026-10-17
Version: 1.0.0

Categorie:
- Encoding errors: input binario malformato (recuperabili dal chiamante)
- Integrity errors: id ricalcolato diverso da quello salvato
- Policy errors: operazioni rifiutate dal dominio (blocco congelato, round vuoto)
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class MetaChainException(Exception):
    """
    Eccezione base per tutte le eccezioni MetaChain.

    Attributes:
        message (str): Messaggio errore
        code (str): Codice errore (es. "TRUNCATED_INPUT")
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(MetaChainException):
    """Errore configurazione sistema"""
    pass


class InvalidConfigError(ConfigError):
    """Configurazione invalida (es. parametri Snowball incoerenti)"""
    pass


# ============================================================================
# ENCODING ERRORS
# ============================================================================

class EncodingError(MetaChainException):
    """Errore encoding binario (base)"""
    pass


class EncodeError(EncodingError):
    """Valore non rappresentabile nell'encoding binario"""
    pass


class DecodeError(EncodingError):
    """Input binario malformato, troncato o con byte in eccesso"""
    pass


# ============================================================================
# INTEGRITY ERRORS
# ============================================================================

class IntegrityError(MetaChainException):
    """Id ricalcolato non corrisponde all'id salvato"""
    pass


class CorruptedTransactionError(IntegrityError):
    """Transazione con id non coerente con sender/nonce"""
    pass


class CorruptedBlockError(IntegrityError):
    """Blocco con id non coerente con transazioni/predecessore"""
    pass


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

class ValidationError(MetaChainException):
    """Errore validazione (base)"""
    pass


class InvalidTransactionError(ValidationError):
    """Campi transazione con tipo o range invalido"""
    pass


class InvalidBlockError(ValidationError):
    """Blocco con transazioni o predecessore di tipo invalido"""
    pass


# ============================================================================
# POLICY ERRORS
# ============================================================================

class PolicyError(MetaChainException):
    """Operazione rifiutata dalle regole di dominio"""
    pass


class BlockFrozenError(PolicyError):
    """Blocco già aggiunto a una chain: non più modificabile"""
    pass


class EmptyVoteRoundError(PolicyError):
    """Round Snowball senza voti"""
    pass


class AmbiguousVoteError(PolicyError):
    """Round Snowball pesato con esito non definito (pareggio, valore singolo)"""
    pass


class InvalidVoteError(PolicyError):
    """Peso voto negativo o non finito"""
    pass


# ============================================================================
# CRYPTOGRAPHY ERRORS
# ============================================================================

class CryptoError(MetaChainException):
    """Errore crittografia"""
    pass


class InvalidKeyError(CryptoError):
    """Chiave crittografica invalida"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_decode_error(
    reason: str,
    offset: int,
    code: str,
    **details: Any
) -> DecodeError:
    """
    Helper per creare DecodeError con offset.

    Args:
        reason: Descrizione problema
        offset: Posizione nel buffer
        code: Codice errore
        **details: Dettagli aggiuntivi

    Returns:
        DecodeError: Eccezione formattata

    Example:
        >>> raise format_decode_error("truncated input", 12, "TRUNCATED_INPUT", needed=8)
    """
    return DecodeError(
        message=f"Cannot decode at offset {offset}: {reason}",
        code=code,
        details={"offset": offset, **details}
    )


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "MetaChainException",

    # Config
    "ConfigError",
    "InvalidConfigError",

    # Encoding
    "EncodingError",
    "EncodeError",
    "DecodeError",

    # Integrity
    "IntegrityError",
    "CorruptedTransactionError",
    "CorruptedBlockError",

    # Validation
    "ValidationError",
    "InvalidTransactionError",
    "InvalidBlockError",

    # Policy
    "PolicyError",
    "BlockFrozenError",
    "EmptyVoteRoundError",
    "AmbiguousVoteError",
    "InvalidVoteError",

    # Crypto
    "CryptoError",
    "InvalidKeyError",

    # Helpers
    "format_decode_error",
]
