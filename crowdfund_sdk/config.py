"""
Network configuration for the Crowdfund SDK.

Bundled network definitions live in ``networks.json``; environment
variables override individual values:

    CROWDFUND_NETWORK       network name (default: testnet)
    CROWDFUND_RPC_URL       Soroban RPC endpoint
    CROWDFUND_CONTRACT_ID   crowdfund contract address
    CROWDFUND_OWNER         reference account used for read-only calls
    CROWDFUND_TIMEOUT       HTTP timeout in seconds (default: 30)
    CROWDFUND_INSECURE_RPC  set to 1 to allow plain http:// endpoints
"""
import importlib.resources
import json
import os
import urllib.parse
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_NETWORK = "testnet"


def validate_url(url_name: str, url: str) -> str:
    """
    Require https:// unless the host is local or insecure mode is enabled.

    Args:
        url_name: Name of the setting, used in the error message
        url: URL to check

    Returns:
        The URL unchanged

    Raises:
        ValueError: If the URL is insecure
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("CROWDFUND_INSECURE_RPC") != "1":
            raise ValueError(
                f"{url_name} must use https:// for security (got: {parsed.scheme}://). "
                "Set CROWDFUND_INSECURE_RPC=1 to allow HTTP for development."
            )
    return url


class NetworkConfig:
    """Loader for the bundled network definitions"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load all network definitions, caching them after the first read.

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("crowdfund_sdk").joinpath("networks.json")
            cls._networks_cache = json.loads(resource.read_text(encoding="utf-8"))
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the definition of a single network.

        Raises:
            ValueError: If the network is not defined
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Network '{name}' not found. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        Get the RPC URL for a network.

        Precedence: ``override``, then the ``<NAME>_RPC_URL`` environment
        variable (e.g. TESTNET_RPC_URL), then the bundled definition.
        """
        if override:
            return override
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        if os.environ.get(env_var):
            return os.environ[env_var]
        return cls.get_network(name)["rpc"]


class NetworkSettings(BaseModel):
    """Validated settings for one network"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = DEFAULT_NETWORK
    rpc_url: str = Field(..., alias="rpc")
    passphrase: str
    contract_id: str = Field(..., alias="contractId")
    owner: str = ""
    token: str = ""
    friendbot_url: Optional[str] = Field(None, alias="friendbot")
    explorer_url: Optional[str] = Field(None, alias="explorer")
    timeout: int = 30

    @field_validator("rpc_url", "friendbot_url")
    @classmethod
    def _secure_url(cls, value: Optional[str], info) -> Optional[str]:
        if value:
            validate_url(info.field_name, value)
        return value

    @classmethod
    def from_env(cls, network: Optional[str] = None, **overrides: Any) -> "NetworkSettings":
        """
        Resolve settings from the bundled definition, then env vars, then overrides.

        Args:
            network: Network name (defaults to CROWDFUND_NETWORK or "testnet")
            **overrides: Field values taking precedence over everything else
        """
        name = network or os.environ.get("CROWDFUND_NETWORK", DEFAULT_NETWORK)
        values: Dict[str, Any] = dict(NetworkConfig.get_network(name))
        values["name"] = name
        values["rpc"] = NetworkConfig.get_rpc_url(name)

        env_map = {
            "CROWDFUND_RPC_URL": "rpc",
            "CROWDFUND_CONTRACT_ID": "contractId",
            "CROWDFUND_OWNER": "owner",
            "CROWDFUND_TIMEOUT": "timeout",
        }
        for env_var, key in env_map.items():
            if os.environ.get(env_var):
                values[key] = os.environ[env_var]

        aliases = {field_name: f.alias for field_name, f in cls.model_fields.items() if f.alias}
        for key, value in overrides.items():
            if value is not None:
                values[aliases.get(key, key)] = value
        return cls.model_validate(values)
