"""
DAV SDK - register DAV identities and run mission escrow contracts.
"""
from .chain import ChainClient
from .client import ALREADY_REGISTERED, REGISTRATION_REQUEST_HASH, TOKEN_AMOUNT, DavClient
from .config import SDKConfig
from .exceptions import (
    DavSDKError,
    GasEstimationError,
    SubmissionError,
    UnknownContractError,
    ValidationError,
)
from .messages import Location, MissionParams, StatusMessageParams, deserialize
from .models import ContractEvent, Price, TxReceipt, calculate_price
from .registry import ArtifactTable, ContractArtifact, ContractHandle, ContractType, resolve
from .transactions import estimate_and_build, sign_and_send, to_safe_gas_limit
from .version import __version__
from .watcher import ContractWatcher, WatcherCursor

__all__ = [
    "DavClient",
    "ChainClient",
    "SDKConfig",
    "ArtifactTable",
    "ContractArtifact",
    "ContractHandle",
    "ContractType",
    "resolve",
    "estimate_and_build",
    "sign_and_send",
    "to_safe_gas_limit",
    "ContractWatcher",
    "WatcherCursor",
    "TxReceipt",
    "ContractEvent",
    "Price",
    "calculate_price",
    "MissionParams",
    "StatusMessageParams",
    "Location",
    "deserialize",
    "DavSDKError",
    "UnknownContractError",
    "GasEstimationError",
    "SubmissionError",
    "ValidationError",
    "ALREADY_REGISTERED",
    "REGISTRATION_REQUEST_HASH",
    "TOKEN_AMOUNT",
    "__version__",
]
