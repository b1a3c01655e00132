"""
DavClient - Main client for DAV identities and missions.
"""
import logging
from typing import Optional, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from .chain import ChainClient
from .config import SDKConfig
from .exceptions import GasEstimationError
from .models import TxReceipt
from .registry import ContractHandle, ContractType, resolve
from .transactions import estimate_and_build, sign_and_send
from .watcher import DEFAULT_POLL_INTERVAL, ContractWatcher

REGISTRATION_REQUEST_HASH = Web3.keccak(text="DAV Identity Registration")
# TODO: read the mission cost from the BasicMission contract instead of a constant
TOKEN_AMOUNT = 1500000000000
ALREADY_REGISTERED = "ALREADY_REGISTERED"


def mission_id_to_bytes32(mission_id: Union[str, bytes]) -> bytes:
    """Left-align a mission id (an address) in a zero-padded bytes32 value."""
    raw = mission_id if isinstance(mission_id, bytes) else Web3.to_bytes(hexstr=mission_id)
    if len(raw) > 32:
        raise ValueError(f"Mission id is longer than 32 bytes: {mission_id!r}")
    return raw.ljust(32, b"\0")


class DavClient:
    """
    Client for DAV identity registration and mission escrow contracts.

    A mission moves through Unregistered -> Registered -> Approved ->
    Created -> Finalized by calling register_identity, approve_mission,
    start_mission and finalize_mission in order. Private keys are passed
    per call and are never stored on the client.

    To use this client, you'll need:
    - An Ethereum RPC endpoint
    - Contract artifacts with deployments on the configured network
    """

    def __init__(
        self,
        config: SDKConfig,
        chain: Optional[ChainClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the DavClient

        Args:
            config: SDK configuration
            chain: Chain client (built from config if omitted)
            logger: Optional logger instance to use for debug/info logging
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.chain = chain or ChainClient.from_config(config, logger=self.logger)

    def resolve(self, contract_type: Union[ContractType, str]) -> ContractHandle:
        """Resolve a contract on the configured network."""
        return resolve(contract_type, self.config, self.chain)

    @staticmethod
    def generate_mission_id() -> str:
        """
        Generate a fresh mission id.

        The id is the address of a newly created, throwaway account; it holds
        no funds and is never registered.
        """
        return Account.create().address

    def is_identity_registered(self, dav_id: str) -> bool:
        """
        Check whether a DAV ID is registered with the Identity contract.

        Raises:
            UnknownContractError: If the Identity contract is not deployed on the network
        """
        handle = self.resolve(ContractType.IDENTITY)
        function = handle.contract.functions.isRegistered(Web3.to_checksum_address(dav_id))
        return bool(self.chain.call(function))

    def register_identity(
        self,
        dav_id: str,
        identity_private_key: str,
        wallet_address: str,
        wallet_private_key: str
    ) -> str:
        """
        Register a DAV ID, paying gas from a wallet.

        Args:
            dav_id: The identity to register (an address)
            identity_private_key: Key of the identity; signs the registration request
            wallet_address: Address of the wallet paying for the transaction
            wallet_private_key: Key of the wallet; signs the transaction

        Returns:
            Transaction hash, or ALREADY_REGISTERED if the identity was already registered

        Raises:
            GasEstimationError: If the registration would revert for another reason
            SubmissionError: If the transaction fails
        """
        if self.is_identity_registered(dav_id):
            self.logger.info(f"Identity {dav_id} is already registered")
            return ALREADY_REGISTERED

        handle = self.resolve(ContractType.IDENTITY)
        signed = Account.sign_message(
            encode_defunct(primitive=REGISTRATION_REQUEST_HASH),
            private_key=identity_private_key
        )
        function = handle.contract.functions.register(
            Web3.to_checksum_address(dav_id),
            signed.v,
            signed.r.to_bytes(32, "big"),
            signed.s.to_bytes(32, "big")
        )

        try:
            tx = estimate_and_build(self.chain, handle, function, Web3.to_checksum_address(wallet_address))
        except GasEstimationError:
            # Another registration may have been mined since the check
            if self.is_identity_registered(dav_id):
                self.logger.info(f"Identity {dav_id} was registered concurrently")
                return ALREADY_REGISTERED
            raise

        receipt = sign_and_send(self.chain, tx, wallet_private_key)
        self.logger.info(f"Registered identity {dav_id} in {receipt.tx_hash}")
        return receipt.tx_hash

    def approve_mission(self, dav_id: str, wallet_private_key: str) -> TxReceipt:
        """
        Approve the mission contract to draw TOKEN_AMOUNT DAV from the identity.

        Raises:
            GasEstimationError: If the approval would revert
            SubmissionError: If the transaction fails (e.g. insufficient balance)
        """
        token = self.resolve(ContractType.DAV_TOKEN)
        mission = self.resolve(ContractType.BASIC_MISSION)
        function = token.contract.functions.approve(mission.address, TOKEN_AMOUNT)
        tx = estimate_and_build(self.chain, token, function, Web3.to_checksum_address(dav_id))
        return sign_and_send(self.chain, tx, wallet_private_key)

    def start_mission(
        self,
        mission_id: str,
        dav_id: str,
        wallet_public_key: str,
        wallet_private_key: str,
        vehicle_id: str
    ) -> TxReceipt:
        """
        Create a mission between a consumer identity and a vehicle.

        The wallet's nonce is fetched explicitly so the transaction is ordered
        after any earlier transaction from the same wallet.

        Args:
            mission_id: Mission id (see generate_mission_id)
            dav_id: DAV ID of the consumer paying for the mission
            wallet_public_key: Address of the wallet sending the transaction
            wallet_private_key: Key of the wallet
            vehicle_id: DAV ID of the vehicle performing the mission

        Raises:
            GasEstimationError: If the creation would revert
            SubmissionError: If the transaction fails
        """
        handle = self.resolve(ContractType.BASIC_MISSION)
        wallet = Web3.to_checksum_address(wallet_public_key)
        nonce = self.chain.get_transaction_count(wallet)
        function = handle.contract.functions.create(
            mission_id_to_bytes32(mission_id),
            Web3.to_checksum_address(vehicle_id),
            Web3.to_checksum_address(dav_id),
            TOKEN_AMOUNT
        )
        tx = estimate_and_build(self.chain, handle, function, wallet, extra_fields={"nonce": nonce})
        receipt = sign_and_send(self.chain, tx, wallet_private_key)
        self.logger.info(f"Started mission {mission_id} in {receipt.tx_hash}")
        return receipt

    def finalize_mission(
        self,
        mission_id: str,
        dav_id: str,
        wallet_public_key: str,
        wallet_private_key: str
    ) -> TxReceipt:
        """
        Mark a mission as fulfilled.

        The wallet both pays for and sends the transaction; dav_id only
        identifies the consumer in logs.

        Raises:
            GasEstimationError: If finalization would revert
            SubmissionError: If the transaction fails
        """
        handle = self.resolve(ContractType.BASIC_MISSION)
        wallet = Web3.to_checksum_address(wallet_public_key)
        function = handle.contract.functions.fulfilled(mission_id_to_bytes32(mission_id))
        tx = estimate_and_build(self.chain, handle, function, wallet)
        receipt = sign_and_send(self.chain, tx, wallet_private_key)
        self.logger.info(f"Finalized mission {mission_id} for {dav_id} in {receipt.tx_hash}")
        return receipt

    def watch_contract(
        self,
        dav_id: str,
        contract_type: Union[ContractType, str],
        interval: float = DEFAULT_POLL_INTERVAL
    ) -> ContractWatcher:
        """
        Watch a contract for new events.

        Every event of the contract is reported; events are not filtered by
        dav_id.

        Returns:
            A ContractWatcher; iterate it to receive events
        """
        handle = self.resolve(contract_type)
        self.logger.debug(f"Watching {handle.contract_type.value} at {handle.address} for {dav_id}")
        return ContractWatcher(self.chain, handle, interval=interval, logger=self.logger)
