"""
# Collection Resolver

Maps a chain name to the physical collection holding that chain's nodes. Federation code
only ever asks the resolver, so the naming convention lives in exactly one place and tests
can substitute their own mapping.

The default convention is prefix concatenation: with `NODE_COLLECTION_PREFIX="treeNodes"`,
chain `Gold` lives in `treeNodesGold`.
"""

from typing import Any, Optional, Protocol

from referral_chains.config import settings
from referral_chains.services.errors import ConfigurationError

# Characters MongoDB forbids in collection names
ILLEGAL_NAME_CHARACTERS = ("$", "\x00")


class CollectionResolver(Protocol):
    def resolve(self, chain_name: str) -> str: ...


class PrefixCollectionResolver:
    """Resolve chain names by prepending a fixed prefix."""

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix if prefix is not None else settings.NODE_COLLECTION_PREFIX

    def resolve(self, chain_name: str) -> str:
        return f"{self.prefix}{chain_name}"


def validate_chain_name(chain_name: Any) -> str:
    """
    Check that a registry value is usable as a chain name before it is resolved.

    Raises:
        ConfigurationError: For non-string, blank or MongoDB-illegal names.
    """
    if not isinstance(chain_name, str) or not chain_name.strip():
        raise ConfigurationError(f"Invalid chain name: {chain_name!r}")
    if any(char in chain_name for char in ILLEGAL_NAME_CHARACTERS):
        raise ConfigurationError(f"Invalid chain name: {chain_name!r}")
    return chain_name
