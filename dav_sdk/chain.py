"""
ChainClient - the single boundary between the SDK and the Ethereum node.

Every read call, gas estimate, gas price and nonce query, raw transaction
submission and event query goes through this class.
"""
import logging
from typing import Any, Dict, List, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from .config import SDKConfig
from .exceptions import GasEstimationError, SubmissionError
from .models import ContractEvent, TxReceipt, convert_event, convert_receipt
from .registry import ContractHandle


class ChainClient:
    """
    Thin wrapper around a Web3 instance.

    Translates web3 failures into the SDK's exceptions and converts
    receipts and event logs into SDK models.
    """

    def __init__(
        self,
        eth_node_url: str,
        retry_count: int = 3,
        timeout: int = 30,
        receipt_timeout: float = 120,
        poll_latency: float = 0.1,
        logger: Optional[logging.Logger] = None,
        w3: Optional[Web3] = None
    ):
        """
        Initialize the ChainClient

        Args:
            eth_node_url: Ethereum node RPC endpoint URL
            retry_count: Number of retries for failed HTTP connections
            timeout: Timeout for HTTP requests in seconds
            receipt_timeout: How long to wait for a transaction receipt in seconds
            poll_latency: How often to poll for a receipt in seconds
            logger: Optional logger instance to use for debug/info logging
            w3: Pre-built Web3 instance (skips provider setup)
        """
        self.eth_node_url = eth_node_url
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency
        self.logger = logger or logging.getLogger(__name__)

        if w3 is not None:
            self.w3 = w3
            return

        # Only connection failures are retried: a request that reached the
        # node (e.g. eth_sendRawTransaction) is never sent twice
        self.session = requests.Session()
        retries = Retry(
            total=retry_count,
            connect=retry_count,
            read=0,
            status=0,
            other=0,
            backoff_factor=0.5,
            allowed_methods=["POST"],
            raise_on_status=False
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

        self.w3 = Web3(Web3.HTTPProvider(
            eth_node_url,
            request_kwargs={"timeout": timeout},
            session=self.session,
            exception_retry_configuration=None
        ))

    @classmethod
    def from_config(cls, config: SDKConfig, logger: Optional[logging.Logger] = None) -> "ChainClient":
        """Create a client for the node named in an SDKConfig."""
        return cls(
            config.eth_node_url,
            retry_count=config.retry_count,
            timeout=config.request_timeout,
            receipt_timeout=config.receipt_timeout,
            poll_latency=config.poll_latency,
            logger=logger
        )

    @property
    def chain_id(self) -> int:
        return self.w3.eth.chain_id

    def contract(self, address: str, abi: List[Dict[str, Any]]) -> Any:
        """Create a web3 contract instance."""
        return self.w3.eth.contract(address=address, abi=abi)

    def call(self, function: Any, tx_params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a read-only contract call.

        Args:
            function: Bound contract function, e.g. contract.functions.isRegistered(dav_id)
            tx_params: Optional call parameters (from, block, ...)
        """
        if tx_params:
            return function.call(tx_params)
        return function.call()

    def estimate_gas(self, function: Any, tx_params: Dict[str, Any]) -> int:
        """
        Estimate gas for a contract function call.

        Raises:
            GasEstimationError: If the call would revert or the node rejects the estimate
        """
        try:
            estimated = function.estimate_gas(tx_params)
        except ContractLogicError as e:
            reason = getattr(e, "message", None) or str(e)
            self.logger.error(f"Gas estimation reverted: {reason}")
            raise GasEstimationError(f"Transaction would revert: {reason}", reason=reason) from e
        except (Web3Exception, ValueError, requests.RequestException) as e:
            self.logger.error(f"Gas estimation failed: {e}")
            raise GasEstimationError(f"Gas estimation failed: {e}") from e
        self.logger.debug(f"Estimated gas: {estimated}")
        return estimated

    def get_gas_price(self) -> int:
        return self.w3.eth.gas_price

    def get_transaction_count(self, address: str, block_identifier: Union[str, int] = "latest") -> int:
        """
        Get the number of transactions sent from an address (its next nonce).

        Raises:
            SubmissionError: If the node fails to return the count
        """
        try:
            return self.w3.eth.get_transaction_count(Web3.to_checksum_address(address), block_identifier)
        except (Web3Exception, ValueError, requests.RequestException) as e:
            self.logger.error(f"Nonce lookup failed for {address}: {e}")
            raise SubmissionError(f"Failed to get transaction count: {e}") from e

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """
        Submit a signed transaction.

        Returns:
            Transaction hash as a 0x-prefixed hex string

        Raises:
            SubmissionError: If the node rejects the transaction
        """
        try:
            tx_hash = self.w3.eth.send_raw_transaction(raw_transaction)
        except (Web3Exception, ValueError, requests.RequestException) as e:
            self.logger.error(f"Web3 transaction failed: {e}")
            raise SubmissionError(f"Failed to send transaction: {e}") from e
        tx_hash_hex = Web3.to_hex(tx_hash) if isinstance(tx_hash, (bytes, bytearray)) else tx_hash
        self.logger.info(f"Web3 transaction sent: {tx_hash_hex}")
        return tx_hash_hex

    def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """
        Wait until a transaction is included and return its receipt.

        Raises:
            SubmissionError: If the wait times out or the transaction reverted
        """
        try:
            web3_receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            self.logger.error(f"Timed out waiting for receipt of {tx_hash}")
            raise SubmissionError(f"Timed out waiting for receipt: {e}", tx_hash=tx_hash) from e
        except (Web3Exception, ValueError, requests.RequestException) as e:
            self.logger.error(f"Web3 transaction failed: {e}")
            raise SubmissionError(f"Failed to get receipt: {e}", tx_hash=tx_hash) from e

        receipt = convert_receipt(web3_receipt)
        if receipt.status == 0:
            self.logger.error(f"Web3 transaction reverted: {tx_hash}")
            raise SubmissionError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        self.logger.info(f"Web3 transaction succeeded: {tx_hash} (block {receipt.block_number})")
        return receipt

    def get_past_events(self, handle: ContractHandle, from_block: int = 0) -> List[ContractEvent]:
        """
        Fetch every event the contract emitted since from_block.

        Events are fetched per event type declared in the ABI, flattened and
        ordered by (block number, transaction index, log index).
        """
        events = []
        for name in handle.event_names:
            event = getattr(handle.contract.events, name)()
            for log in event.get_logs(from_block=from_block):
                events.append(convert_event(log))
        events.sort(key=lambda e: (e.block_number, e.transaction_index, e.log_index))
        self.logger.debug(f"Fetched {len(events)} {handle.contract_type.value} events from block {from_block}")
        return events
