"""
chainsession.integrations.chain.factory - Chain Backend Factory
=================================================================

Maps ``ChainConfig.provider`` to a concrete ChainInterface:
    - "mock" → MockChain

Usage:
    >>> chain = create_chain(ChainConfig(provider="mock"))
"""

from __future__ import annotations

from chainsession.core.config import ChainConfig
from chainsession.core.exceptions import ConfigurationError
from chainsession.integrations.chain.base import ChainInterface


def create_chain(config: ChainConfig) -> ChainInterface:
    """Create the chain backend named by ``config.provider``.

    Raises:
        ConfigurationError: If the provider name is not recognized.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from chainsession.integrations.chain.mock import MockChain
        return MockChain(config)

    raise ConfigurationError(
        message=f"Unknown chain provider: '{provider_name}'. Available providers: 'mock'.",
        error_code="UNKNOWN_CHAIN_PROVIDER",
        details={"provider": config.provider},
    )
