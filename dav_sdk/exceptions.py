"""
Exceptions for the DAV SDK.
"""
from typing import Optional


class DavSDKError(Exception):
    """Base exception for all DAV SDK errors."""
    pass


class UnknownContractError(DavSDKError, KeyError):
    """Raised when a contract type or network id is missing from the artifact table."""

    def __init__(self, contract_type: str, network_id: Optional[str] = None):
        self.contract_type = contract_type
        self.network_id = network_id
        if network_id is None:
            message = f"Unknown contract: {contract_type}"
        else:
            message = f"Contract {contract_type} is not deployed on network {network_id!r}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class GasEstimationError(DavSDKError):
    """Raised when the node reports that a transaction would revert."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message)


class SubmissionError(DavSDKError):
    """Raised when signing, sending or confirming a transaction fails."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ValidationError(DavSDKError, ValueError):
    """Raised when message parameters or configuration are malformed."""
    pass
