"""
MetaChain - Version Management
================================
Versioning semantico del pacchetto.
"""

from typing import NamedTuple

from meta_chain.constants import PROJECT_NAME, PROTOCOL_VERSION


class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""


VERSION = VersionInfo(major=1, minor=0, patch=0)


def get_version_string() -> str:
    """
    Get version as string.

    Returns:
        str: Version (e.g., "1.0.0", "1.0.0-beta")

    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"

    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"

    return version_str


def get_build_info() -> dict:
    """Versione pacchetto + versione protocollo"""
    return {
        "project": PROJECT_NAME,
        "version": get_version_string(),
        "protocol_version": PROTOCOL_VERSION,
    }


__version__ = get_version_string()
__version_info__ = VERSION

__all__ = [
    "__version__",
    "__version_info__",
    "VERSION",
    "get_version_string",
    "get_build_info",
]
