"""
SDK configuration.

An SDKConfig is an immutable value passed to every client; it carries the
node endpoint, the network id used to look up contract deployments, and
the contract artifact table.
"""
import logging
import os
import urllib.parse
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from .exceptions import ValidationError
from .registry import ArtifactTable

logger = logging.getLogger(__name__)

ENV_NODE_URL = "DAV_ETH_NODE_URL"
ENV_BLOCKCHAIN_TYPE = "DAV_BLOCKCHAIN_TYPE"
ENV_CONTRACTS_DIR = "DAV_CONTRACTS_DIR"

_LOCAL_HOSTS = ("localhost", "127.0.0.1")


class SDKConfig(BaseModel):
    """
    Configuration for the DAV SDK.

    Attributes:
        eth_node_url: Ethereum node RPC endpoint (e.g. "http://localhost:8545")
        blockchain_type: Network id used to select contract deployments
        contracts: Artifact table; the bundled ABIs are used when omitted
        receipt_timeout: Seconds to wait for a transaction receipt
        poll_latency: Seconds between receipt polls
        request_timeout: HTTP timeout for node requests in seconds
        retry_count: Retries for HTTP connection failures
    """
    eth_node_url: str
    blockchain_type: str = "local"
    contracts: Optional[ArtifactTable] = None
    receipt_timeout: float = 120
    poll_latency: float = 0.1
    request_timeout: int = 30
    retry_count: int = 3

    class Config:
        frozen = True

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid SDK configuration: {e}") from e

    @field_validator("eth_node_url")
    @classmethod
    def check_node_url(cls, url: str) -> str:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"eth_node_url must be an http(s) URL (got: {url!r})")
        host = parsed.netloc.split(":")[0]
        if parsed.scheme == "http" and host not in _LOCAL_HOSTS:
            logger.warning(f"eth_node_url uses unencrypted {parsed.scheme}:// for remote host {host}")
        return url

    @field_validator("blockchain_type", mode="before")
    @classmethod
    def network_id_as_str(cls, value: Any) -> str:
        # Truffle artifacts key deployments by string network id
        return str(value)

    @property
    def artifacts(self) -> ArtifactTable:
        """The artifact table in effect for this configuration"""
        return self.contracts if self.contracts is not None else ArtifactTable.bundled()

    @classmethod
    def from_env(cls, **overrides: Any) -> "SDKConfig":
        """
        Build a configuration from environment variables.

        Reads DAV_ETH_NODE_URL, DAV_BLOCKCHAIN_TYPE and DAV_CONTRACTS_DIR
        (a Truffle build directory). Keyword arguments take precedence.

        Raises:
            ValidationError: If no node URL is configured
        """
        values = {}
        node_url = os.environ.get(ENV_NODE_URL)
        if node_url:
            values["eth_node_url"] = node_url
        blockchain_type = os.environ.get(ENV_BLOCKCHAIN_TYPE)
        if blockchain_type:
            values["blockchain_type"] = blockchain_type
        contracts_dir = os.environ.get(ENV_CONTRACTS_DIR)
        if contracts_dir and "contracts" not in overrides:
            values["contracts"] = ArtifactTable.from_directory(contracts_dir)
        values.update(overrides)

        if "eth_node_url" not in values:
            raise ValidationError(f"No Ethereum node configured; set {ENV_NODE_URL}")
        return cls(**values)
