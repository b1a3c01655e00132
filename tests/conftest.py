"""
Pytest fixtures for the DAV SDK tests.
"""
import pytest
from unittest.mock import MagicMock
from eth_account import Account
from web3 import Web3

from dav_sdk import ArtifactTable, ChainClient, ContractType, DavClient, SDKConfig
from dav_sdk._rate_limited_log import clear_rate_limited_log_cache

# Constants for testing
TEST_NODE_URL = "http://localhost:8545"
TEST_NETWORK = "local"
TEST_CHAIN_ID = 1337
TEST_GAS_PRICE = 1000000000  # 1 gwei
TEST_ESTIMATED_GAS = 50000
TEST_NONCE = 7

IDENTITY_PRIV_KEY = "0x" + "11" * 32
WALLET_PRIV_KEY = "0x" + "22" * 32
VEHICLE_PRIV_KEY = "0x" + "33" * 32
IDENTITY_ADDRESS = Account.from_key(IDENTITY_PRIV_KEY).address
WALLET_ADDRESS = Account.from_key(WALLET_PRIV_KEY).address
VEHICLE_ADDRESS = Account.from_key(VEHICLE_PRIV_KEY).address

CONTRACT_ADDRESSES = {
    ContractType.IDENTITY: Web3.to_checksum_address("0x" + "a1" * 20),
    ContractType.DAV_TOKEN: Web3.to_checksum_address("0x" + "b2" * 20),
    ContractType.BASIC_MISSION: Web3.to_checksum_address("0x" + "c3" * 20),
}

MOCKED_FUNCTIONS = ("isRegistered", "register", "approve", "create", "fulfilled")


@pytest.fixture(autouse=True)
def _reset_rate_limited_log():
    """Each test sees rate-limited warnings afresh."""
    clear_rate_limited_log_cache()
    yield
    clear_rate_limited_log_cache()


def make_contract_mock(address):
    """
    Create a contract mock whose bound functions estimate gas and build
    transactions the way web3 does.
    """
    contract = MagicMock()
    contract.address = address

    for name in MOCKED_FUNCTIONS:
        function = MagicMock(name=name)
        function.estimate_gas.return_value = TEST_ESTIMATED_GAS
        function.call.return_value = False

        def build_tx(tx_params, _address=address, _name=name):
            return {
                **tx_params,
                "to": _address,
                "data": "0x" + _name.encode().hex(),
                "chainId": TEST_CHAIN_ID,
                "value": 0,
            }

        function.build_transaction.side_effect = build_tx
        getattr(contract.functions, name).return_value = function

    return contract


def make_receipt(tx_hash, status=1):
    """Create a receipt as returned by web3"""
    return {
        "transactionHash": tx_hash,
        "blockNumber": 12345,
        "blockHash": bytes.fromhex("ab" * 32),
        "transactionIndex": 0,
        "status": status,
        "gasUsed": TEST_ESTIMATED_GAS,
        "from": WALLET_ADDRESS,
        "to": CONTRACT_ADDRESSES[ContractType.BASIC_MISSION],
        "logs": [],
    }


@pytest.fixture
def mock_contracts():
    """Contract mocks keyed by address, created on first use"""
    return {}


@pytest.fixture
def mock_w3(mock_contracts):
    """
    Create a mock Web3 instance that models a local node.
    """
    w3 = MagicMock()
    w3.eth.chain_id = TEST_CHAIN_ID
    w3.eth.gas_price = TEST_GAS_PRICE
    w3.eth.get_transaction_count.return_value = TEST_NONCE

    # The transaction hash of a raw transaction is its keccak hash
    w3.eth.send_raw_transaction.side_effect = lambda raw_tx: Web3.keccak(raw_tx)
    w3.eth.wait_for_transaction_receipt.side_effect = lambda tx_hash, **kwargs: make_receipt(tx_hash)

    def contract(address, abi):
        if address not in mock_contracts:
            mock_contracts[address] = make_contract_mock(address)
        return mock_contracts[address]

    w3.eth.contract.side_effect = contract
    return w3


@pytest.fixture
def artifacts():
    """Bundled ABIs deployed at the test addresses"""
    table = ArtifactTable.bundled()
    for contract_type, address in CONTRACT_ADDRESSES.items():
        table = table.with_address(contract_type, TEST_NETWORK, address)
    return table


@pytest.fixture
def config(artifacts):
    return SDKConfig(eth_node_url=TEST_NODE_URL, blockchain_type=TEST_NETWORK, contracts=artifacts)


@pytest.fixture
def chain(mock_w3):
    return ChainClient(TEST_NODE_URL, w3=mock_w3)


@pytest.fixture
def client(config, chain):
    return DavClient(config, chain=chain)


@pytest.fixture
def identity_contract(client, mock_contracts):
    """The mocked Identity contract"""
    client.resolve(ContractType.IDENTITY)
    return mock_contracts[CONTRACT_ADDRESSES[ContractType.IDENTITY]]


@pytest.fixture
def token_contract(client, mock_contracts):
    """The mocked DAVToken contract"""
    client.resolve(ContractType.DAV_TOKEN)
    return mock_contracts[CONTRACT_ADDRESSES[ContractType.DAV_TOKEN]]


@pytest.fixture
def mission_contract(client, mock_contracts):
    """The mocked BasicMission contract"""
    client.resolve(ContractType.BASIC_MISSION)
    return mock_contracts[CONTRACT_ADDRESSES[ContractType.BASIC_MISSION]]
