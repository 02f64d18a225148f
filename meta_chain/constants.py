"""
MetaChain - Core Constants
============================
Costanti del protocollo: encoding, digest, parametri di default.

Last Updated: 2026-10-17
Version: 1.0.0

IMPORTANTE: le costanti di encoding determinano gli id di transazioni e
blocchi. Modificarle cambia ogni id già calcolato.
"""

from typing import Final

# ============================================================================
# IDENTIFICAZIONE PROGETTO
# ============================================================================

PROJECT_NAME: Final[str] = "MetaChain"

# Versione protocollo (encoding + regole di consenso)
PROTOCOL_VERSION: Final[int] = 1

# ============================================================================
# DIGEST & ENCODING
# ============================================================================

# Keccak-256 output
DIGEST_SIZE: Final[int] = 32

# Interi e lunghezze: u64 little-endian
U64_SIZE: Final[int] = 8
U64_MAX: Final[int] = 2**64 - 1

# Tag Option
OPTION_NONE_TAG: Final[int] = 0
OPTION_SOME_TAG: Final[int] = 1

# ============================================================================
# CHAIN & NODE
# ============================================================================

DEFAULT_CHAIN_CAPACITY: Final[int] = 1000

# Il primo nonce usato dal nodo per le transazioni locali
INITIAL_NONCE: Final[int] = 1

# Range mescolato per il sender placeholder (1..99)
PLACEHOLDER_SENDER_START: Final[int] = 1
PLACEHOLDER_SENDER_STOP: Final[int] = 100

# ============================================================================
# SNOWBALL DEFAULTS
# ============================================================================

# k: peer interrogati per round
DEFAULT_SAMPLE_SIZE: Final[int] = 5

# alpha: voti necessari per il quorum
DEFAULT_QUORUM_SIZE: Final[int] = 4

# beta: round consecutivi necessari (counter > beta)
DEFAULT_DECISION_THRESHOLD: Final[int] = 3


__all__ = [
    "PROJECT_NAME",
    "PROTOCOL_VERSION",
    "DIGEST_SIZE",
    "U64_SIZE",
    "U64_MAX",
    "OPTION_NONE_TAG",
    "OPTION_SOME_TAG",
    "DEFAULT_CHAIN_CAPACITY",
    "INITIAL_NONCE",
    "PLACEHOLDER_SENDER_START",
    "PLACEHOLDER_SENDER_STOP",
    "DEFAULT_SAMPLE_SIZE",
    "DEFAULT_QUORUM_SIZE",
    "DEFAULT_DECISION_THRESHOLD",
]
