"""
MetaChain - Errors and Version Tests
======================================
Unit tests for the exception hierarchy and version helpers.
"""

import pytest

import meta_chain
from meta_chain.errors import (
    BlockFrozenError,
    DecodeError,
    EncodingError,
    InvalidBlockError,
    InvalidTransactionError,
    MetaChainException,
    PolicyError,
    ValidationError,
    format_decode_error,
)
from meta_chain.version import get_build_info, get_version_string


class TestExceptions:
    """Test base exception behaviour"""

    def test_default_code(self):
        """Test code defaults to class name"""
        error = BlockFrozenError("frozen")

        assert error.code == "BlockFrozenError"
        assert error.details == {}
        assert str(error) == "[BlockFrozenError] frozen"

    def test_to_dict(self):
        """Test serialization for logging"""
        error = InvalidTransactionError("bad nonce", code="NONCE_OUT_OF_RANGE", details={"nonce": -1})

        assert error.to_dict() == {
            "error": "NONCE_OUT_OF_RANGE",
            "message": "bad nonce",
            "details": {"nonce": -1},
        }
        assert "Details: {'nonce': -1}" in str(error)

    @pytest.mark.parametrize("cls, family", [
        (InvalidTransactionError, ValidationError),
        (InvalidBlockError, ValidationError),
        (DecodeError, EncodingError),
        (BlockFrozenError, PolicyError),
    ])
    def test_hierarchy(self, cls, family):
        """Test every error belongs to its family and the base"""
        assert issubclass(cls, family)
        assert issubclass(cls, MetaChainException)

    def test_format_decode_error(self):
        """Test offset in message and details"""
        error = format_decode_error("truncated input", 12, "TRUNCATED_INPUT", needed=8)

        assert isinstance(error, DecodeError)
        assert error.code == "TRUNCATED_INPUT"
        assert error.details == {"offset": 12, "needed": 8}
        assert "offset 12" in error.message


class TestVersion:
    """Test version helpers"""

    def test_package_version(self):
        """Test __version__ matches version string"""
        assert meta_chain.__version__ == get_version_string()

    def test_build_info(self):
        """Test build info fields"""
        info = get_build_info()

        assert info["version"] == get_version_string()
        assert set(info) == {"project", "version", "protocol_version"}
