"""
chainsession.core.config - Configuration Management
=====================================================

Configuration can be loaded from multiple sources with the following
priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with CHAINSESSION_)
    3. YAML configuration file (chainsession.yaml)
    4. Default values defined in the models below

Configuration flows DOWN through the session. The top-level SessionConfig
is created once and handed to the ContractSession facade:

    SessionConfig
        ├── ChainConfig          → create_chain() → Deployer / Invoker
        └── (other settings)     → account, output filtering, logging

Usage:
    config = SessionConfig()
    config = load_config("chainsession.yaml")
    config = SessionConfig(account="0xabc...", log_level="DEBUG")

Environment Variables:
    CHAINSESSION_LOG_LEVEL=DEBUG
    CHAINSESSION_ACCOUNT=0x5B38Da6a701c568545dCfcB03FcB875f56beddC4
    CHAINSESSION_CHAIN__PROVIDER=mock
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from chainsession.core.exceptions import ConfigurationError


# =============================================================================
# Chain Configuration
# =============================================================================
# Selects the Chain Interface implementation. Only the in-process mock ships
# with the package; RPC-backed providers plug in through create_chain().
# =============================================================================
class ChainConfig(BaseModel):
    """Configuration for the chain backend.

    Attributes:
        provider: Which ChainInterface implementation to build.
        endpoint: RPC endpoint URL for network-backed providers. Unused by
            the mock provider.
    """

    provider: str = Field(
        default="mock",
        description="Chain provider name ('mock')",
    )
    endpoint: Optional[str] = Field(
        default=None,
        description="RPC endpoint URL for network-backed providers",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   CHAINSESSION_LOG_LEVEL         → config.log_level
#   CHAINSESSION_ACCOUNT           → config.account
#   CHAINSESSION_CHAIN__PROVIDER   → config.chain.provider
# =============================================================================
class SessionConfig(BaseSettings):
    """Top-level configuration for a contract session.

    Attributes:
        environment: Deployment environment.
        log_level: Python logging level applied by configure_logging().
        account: The single active account identity used as ``from`` for
            every deploy/call/tx. Supplied externally; may be replaced at
            runtime with ContractSession.set_account().
        internal_output_prefix: Result outputs whose name starts with this
            prefix are treated as internal and never cached in instance
            state. An empty string disables the filter.
        chain: Chain backend configuration.

    Example:
        >>> config = SessionConfig(
        ...     account="0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
        ...     chain=ChainConfig(provider="mock"),
        ... )
    """

    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    account: str = Field(
        default="0x0000000000000000000000000000000000000000",
        description="Active account address used for every chain operation",
    )
    internal_output_prefix: str = Field(
        default="_",
        description="Output-name prefix marking results that are not cached",
    )
    chain: ChainConfig = Field(
        default_factory=ChainConfig,
        description="Chain backend configuration",
    )

    model_config = {
        "env_prefix": "CHAINSESSION_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> SessionConfig:
    """Load session configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'chainsession.yaml' in the current directory, falling back to
            pure defaults + environment variables.

    Returns:
        A fully validated SessionConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML file cannot be parsed.
    """
    if path is None:
        default_path = Path("chainsession.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in {path}: {exc}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": path},
                ) from exc
            if isinstance(raw_data, dict):
                yaml_data = raw_data

    return SessionConfig(**yaml_data)


def get_default_config() -> SessionConfig:
    """Create a SessionConfig from defaults and environment variables."""
    return SessionConfig()
