"""
MetaChain - Configuration Management
======================================
Configurazione centralizzata con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-17
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso METACHAIN_
- File .env support
- Parametri Snowball (k, alpha, beta) validati insieme
"""

import os
from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from meta_chain.constants import (
    DEFAULT_CHAIN_CAPACITY,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_QUORUM_SIZE,
    DEFAULT_DECISION_THRESHOLD,
)


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class NodeSettings(BaseSettings):
    """
    Configurazione principale del nodo MetaChain.

    Example:
        # Da environment
        export METACHAIN_NODE_NAME="node-1"
        export METACHAIN_SNOWBALL_QUORUM_SIZE=3

        # Da codice
        config = NodeSettings(node_name="TestNode")
    """

    model_config = SettingsConfigDict(
        env_prefix='METACHAIN_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # NODE IDENTIFICATION
    # ========================================================================

    node_name: str = Field(
        default="MetaChain-Node",
        description="Nome identificativo nodo (aggiunto al context dei log)"
    )

    # ========================================================================
    # CHAIN
    # ========================================================================

    chain_initial_capacity: int = Field(
        default=DEFAULT_CHAIN_CAPACITY,
        ge=0,
        description="Capacità iniziale riservata per la chain"
    )

    # ========================================================================
    # SNOWBALL
    # ========================================================================

    snowball_sample_size: int = Field(
        default=DEFAULT_SAMPLE_SIZE,
        ge=1,
        description="k: peer interrogati per round"
    )

    snowball_quorum_size: int = Field(
        default=DEFAULT_QUORUM_SIZE,
        ge=1,
        description="alpha: voti necessari per il quorum"
    )

    snowball_decision_threshold: int = Field(
        default=DEFAULT_DECISION_THRESHOLD,
        ge=0,
        description="beta: round consecutivi (counter > beta)"
    )

    snowball_max_tracked_values: Optional[int] = Field(
        default=None,
        ge=1,
        description="Max valori in per_value_counters (None = illimitato)"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_to_file: bool = Field(
        default=False,
        description="Salva log su file"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_format: str = Field(
        default="json",
        description="Formato log: json, text"
    )

    log_rotation_mb: int = Field(
        default=100,
        ge=1,
        description="Dimensione max file log prima rotation (MB)"
    )

    log_retention_days: int = Field(
        default=30,
        ge=1,
        description="Numero file log mantenuti"
    )

    enable_console: bool = Field(
        default=True,
        description="Log anche su console"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower

    @model_validator(mode='after')
    def validate_snowball_parameters(self) -> "NodeSettings":
        """alpha non può superare k"""
        if self.snowball_quorum_size > self.snowball_sample_size:
            raise ValueError(
                f"snowball_quorum_size ({self.snowball_quorum_size}) cannot exceed "
                f"snowball_sample_size ({self.snowball_sample_size})"
            )
        return self

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def snowball_parameters(self) -> dict:
        """Parametri per Snowball.__init__"""
        return {
            "sample_size": self.snowball_sample_size,
            "quorum_size": self.snowball_quorum_size,
            "decision_threshold": self.snowball_decision_threshold,
            "max_tracked_values": self.snowball_max_tracked_values,
        }

    def to_dict(self) -> dict:
        """Serializza config"""
        return self.model_dump()

    def to_json(self) -> str:
        """Serializza config in JSON"""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "NodeSettings":
        """Carica config da JSON"""
        return cls.model_validate_json(json_str)

    def __repr__(self) -> str:
        return (
            f"NodeSettings("
            f"node_name={self.node_name}, "
            f"k={self.snowball_sample_size}, "
            f"alpha={self.snowball_quorum_size}, "
            f"beta={self.snowball_decision_threshold})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> NodeSettings:
    """
    Ottieni singleton instance di NodeSettings.

    Returns:
        NodeSettings: Instance configurazione (cached)

    Example:
        >>> config = get_settings()
        >>> config.node_name
        'MetaChain-Node'
    """
    return NodeSettings()


def reload_settings() -> NodeSettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables runtime.
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> NodeSettings:
    """
    Crea settings con valori custom (utile per testing).

    Example:
        >>> test_config = override_settings(snowball_decision_threshold=1)
    """
    return NodeSettings(**kwargs)


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(config: NodeSettings) -> tuple[bool, list[str]]:
    """
    Controlli di coerenza non esprimibili come vincoli di campo.

    Args:
        config: NodeSettings da validare

    Returns:
        tuple: (is_valid, errors_list)
    """
    errors = []

    # Con alpha <= k/2 due valori possono raggiungere il quorum nello stesso round
    if config.snowball_quorum_size * 2 <= config.snowball_sample_size:
        errors.append(
            "snowball_quorum_size should be a strict majority of snowball_sample_size"
        )

    if config.log_to_file and config.log_dir.exists() and not os.access(config.log_dir, os.W_OK):
        errors.append(f"Directory not writable: {config.log_dir}")

    return (len(errors) == 0, errors)


__all__ = [
    "NodeSettings",
    "get_settings",
    "reload_settings",
    "override_settings",
    "validate_config",
]
