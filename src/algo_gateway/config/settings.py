"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``ALGOGW_``, nested via ``__``)
2. YAML config file (``ALGOGW_CONFIG_PATH`` env var or :meth:`AppConfig.from_yaml`)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 6789


class NodeConfig(BaseSettings):
    """Algod / indexer node endpoints, per network.

    The first URL of each list is the one used for requests; further entries
    are kept for resolvers that rotate endpoints.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_NODE__",
        case_sensitive=False,
    )

    testnet: bool = False
    api_token: str = ""
    mainnet_algod_urls: list[str] = Field(
        default_factory=lambda: ["https://mainnet-api.algonode.cloud"]
    )
    mainnet_indexer_urls: list[str] = Field(
        default_factory=lambda: ["https://mainnet-idx.algonode.cloud"]
    )
    testnet_algod_urls: list[str] = Field(
        default_factory=lambda: ["https://testnet-api.algonode.cloud"]
    )
    testnet_indexer_urls: list[str] = Field(
        default_factory=lambda: ["https://testnet-idx.algonode.cloud"]
    )
    timeout: float = 30.0


class ThirdPartyConfig(BaseSettings):
    """API keys for the time-windowed payment search, one per network."""

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_THIRD_PARTY__",
        case_sensitive=False,
    )

    testnet_api_key: str = ""
    mainnet_api_key: str = ""

    def api_key(self, *, testnet: bool) -> str:
        """Return the key configured for the given network."""
        return self.testnet_api_key if testnet else self.mainnet_api_key


class KMSConfig(BaseSettings):
    """Key-management subsystem settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_KMS__",
        case_sensitive=False,
    )

    enabled: bool = True
    url: str = "https://api.tatum.io"
    api_key: str = ""
    timeout: float = 30.0


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``ALGOGW_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALGOGW_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)
    third_party: ThirdPartyConfig = Field(default_factory=ThirdPartyConfig)
    kms: KMSConfig = Field(default_factory=KMSConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
