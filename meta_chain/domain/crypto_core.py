"""
MetaChain - Cryptographic Core Layer
======================================
Hash Keccak-256 e sorgenti del campo sender.

Last Updated: 2026-10-17
Version: 1.0.0

Algorithms:
- Hash: Keccak-256 (padding Keccak originale, NON NIST SHA3-256)
- Identity: ECDSA secp256k1, sender = Keccak-256(public key compressa)

Dependencies:
- pycryptodome (Crypto.Hash.keccak)
- cryptography (chiavi secp256k1)
"""

import random
from typing import Optional

from Crypto.Hash import keccak
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from meta_chain.constants import (
    DIGEST_SIZE,
    PLACEHOLDER_SENDER_START,
    PLACEHOLDER_SENDER_STOP,
)
from meta_chain.errors import CryptoError, InvalidKeyError


# ============================================================================
# HASH FUNCTIONS
# ============================================================================

def compute_keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 digest.

    Keccak-256 è l'unico hash del core:
    - Transaction IDs
    - Block IDs
    - Indici mempool

    Args:
        data: Input bytes

    Returns:
        bytes: 32-byte digest

    Examples:
        >>> compute_keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CryptoError(
            f"compute_keccak256 requires bytes, got {type(data).__name__}",
            code="INVALID_INPUT_TYPE"
        )

    return keccak.new(digest_bits=DIGEST_SIZE * 8, data=bytes(data)).digest()


# ============================================================================
# SENDER SOURCES
# ============================================================================

def placeholder_sender(rng: Optional[random.Random] = None) -> bytes:
    """
    Sender placeholder: Keccak-256 di un range di byte mescolato.

    Sostituisce una vera chiave pubblica nei nodi senza NodeIdentity.

    Args:
        rng: Sorgente casuale (default: SystemRandom)

    Returns:
        bytes: 32-byte sender
    """
    rng = rng or random.SystemRandom()
    numbers = list(range(PLACEHOLDER_SENDER_START, PLACEHOLDER_SENDER_STOP))
    rng.shuffle(numbers)
    return compute_keccak256(bytes(numbers))


class NodeIdentity:
    """
    Identità del nodo basata su keypair ECDSA secp256k1.

    Il core tratta il sender come byte opachi: qui viene derivato come
    Keccak-256 della public key in formato SEC1 compresso (33 byte).

    Examples:
        >>> identity = NodeIdentity.generate()
        >>> len(identity.sender)
        32
    """

    def __init__(self, private_key: ec.EllipticCurvePrivateKey):
        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise InvalidKeyError(
                f"Expected EC private key, got {type(private_key).__name__}",
                code="INVALID_KEY_TYPE"
            )
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise InvalidKeyError(
                f"Unsupported curve: {private_key.curve.name}",
                code="INVALID_CURVE",
                details={"curve": private_key.curve.name}
            )

        self._private_key = private_key
        self._public_key_bytes = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint
        )
        self._sender = compute_keccak256(self._public_key_bytes)

    @classmethod
    def generate(cls) -> "NodeIdentity":
        """Genera nuova identità (CSPRNG)"""
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_private_value(cls, value: int) -> "NodeIdentity":
        """Identità deterministica da scalare privato (testing)"""
        try:
            return cls(ec.derive_private_key(value, ec.SECP256K1()))
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Invalid private value: {e}", code="INVALID_PRIVATE_VALUE") from e

    @classmethod
    def from_private_pem(cls, pem: bytes, password: Optional[bytes] = None) -> "NodeIdentity":
        """Carica identità da private key PEM (PKCS8)"""
        try:
            key = serialization.load_pem_private_key(pem, password=password)
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Cannot load private key: {e}", code="INVALID_PEM") from e
        return cls(key)

    def private_pem(self) -> bytes:
        """Esporta private key PEM (non cifrata)"""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key_bytes

    @property
    def sender(self) -> bytes:
        return self._sender

    def __repr__(self) -> str:
        """Safe repr (no private key)"""
        return f"NodeIdentity(sender={self._sender.hex()[:16]}...)"


__all__ = [
    "compute_keccak256",
    "placeholder_sender",
    "NodeIdentity",
]
