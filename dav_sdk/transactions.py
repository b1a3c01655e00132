"""
Transaction building and submission.

Transactions are built against a resolved contract handle, signed locally
with eth_account and submitted as raw transactions.
"""
import logging
from typing import Any, Dict, Optional

from eth_account import Account

from ._rate_limited_log import rate_limited_log
from .chain import ChainClient
from .exceptions import SubmissionError
from .models import TxReceipt
from .registry import ContractHandle

logger = logging.getLogger(__name__)

GAS_MARGIN = 100
GAS_HARD_CAP = 4_000_000


def to_safe_gas_limit(estimated_gas: int) -> int:
    """Add a small margin to a gas estimate, capped at GAS_HARD_CAP."""
    return min(estimated_gas + GAS_MARGIN, GAS_HARD_CAP)


def estimate_and_build(
    chain: ChainClient,
    handle: ContractHandle,
    function: Any,
    sender: str,
    extra_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build an unsigned transaction for a contract function call.

    Args:
        chain: Chain client
        handle: Resolved contract the function belongs to
        function: Bound contract function, e.g. contract.functions.approve(spender, amount)
        sender: Address placed in the transaction's "from" field
        extra_fields: Additional transaction fields (e.g. an explicit nonce)

    Returns:
        Unsigned transaction dict with data, to, from, gas and gasPrice

    Raises:
        GasEstimationError: If the call would revert
    """
    # web3 fills "to" and "data" from the bound function
    estimated_gas = chain.estimate_gas(function, {"from": sender})
    safe_gas_limit = to_safe_gas_limit(estimated_gas)
    gas_price = chain.get_gas_price()

    tx_params = {
        "from": sender,
        "gas": safe_gas_limit,
        "gasPrice": gas_price,
    }
    if extra_fields:
        tx_params.update(extra_fields)

    tx = dict(function.build_transaction(tx_params))
    tx["to"] = handle.address
    logger.debug(
        f"Built {handle.contract_type.value} transaction: gas={safe_gas_limit} "
        f"gasPrice={gas_price} nonce={tx.get('nonce', 'pending')}"
    )
    return tx


def sign_and_send(chain: ChainClient, transaction: Dict[str, Any], private_key: str) -> TxReceipt:
    """
    Sign a transaction locally and submit it.

    The private key is only used for signing and is not kept. A missing
    nonce is filled with the signer's pending transaction count.

    Args:
        chain: Chain client
        transaction: Unsigned transaction
        private_key: Private key of the signing account

    Returns:
        Receipt of the included transaction

    Raises:
        SubmissionError: If signing, submission or confirmation fails
    """
    try:
        account = Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        raise SubmissionError(f"Invalid private key: {e}") from e

    tx = dict(transaction)
    sender = tx.pop("from", None)
    if sender and sender.lower() != account.address.lower():
        # The chain attributes the transaction to the signing key
        rate_limited_log(
            f"Transaction 'from' {sender} does not match signer {account.address}; "
            f"sending from {account.address}",
            logger_instance=logger
        )
    if "nonce" not in tx:
        tx["nonce"] = chain.get_transaction_count(account.address, "pending")

    try:
        signed_tx = account.sign_transaction(tx)
    except (ValueError, TypeError) as e:
        logger.error(f"Transaction signing failed: {e}")
        raise SubmissionError(f"Failed to sign transaction: {e}") from e

    tx_hash = chain.send_raw_transaction(signed_tx.raw_transaction)
    return chain.wait_for_receipt(tx_hash)
