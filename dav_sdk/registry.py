"""
Contract registry.

Maps the logical DAV contracts to their ABI and per-network deployed
address, and resolves them to callable web3 contract handles.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union, TYPE_CHECKING

from pydantic import BaseModel
from web3 import Web3

from .exceptions import UnknownContractError

# Avoid circular imports with TYPE_CHECKING
if TYPE_CHECKING:
    from .chain import ChainClient
    from .config import SDKConfig

logger = logging.getLogger(__name__)


class ContractType(str, Enum):
    """The contracts the SDK talks to, named as in their build artifacts."""
    IDENTITY = "Identity"
    DAV_TOKEN = "DAVToken"
    BASIC_MISSION = "BasicMission"


class NetworkDeployment(BaseModel):
    """Where a contract is deployed on one network"""
    address: str
    transactionHash: Optional[str] = None

    class Config:
        frozen = True


class ContractArtifact(BaseModel):
    """ABI plus deployments, in the shape of a Truffle build artifact"""
    contractName: Optional[str] = None
    abi: List[Dict[str, Any]]
    networks: Dict[str, NetworkDeployment] = {}

    class Config:
        frozen = True


def _contract_name(contract_type: Union[ContractType, str]) -> str:
    return contract_type.value if isinstance(contract_type, ContractType) else str(contract_type)


class ArtifactTable(BaseModel):
    """
    Immutable table of contract artifacts keyed by contract name.

    A table is passed explicitly through SDKConfig; there is no shared
    process-wide table to override.
    """
    artifacts: Dict[str, ContractArtifact]

    class Config:
        frozen = True

    _bundled_cache: ClassVar[Optional["ArtifactTable"]] = None

    @classmethod
    def bundled(cls) -> "ArtifactTable":
        """
        Load the ABIs shipped with the package.

        The bundled artifacts carry no deployments; add them with
        with_address() or load a build directory with from_directory().
        """
        if cls._bundled_cache is None:
            package = resources.files("dav_sdk.contracts")
            artifacts = {}
            for contract_type in ContractType:
                raw = package.joinpath(f"{contract_type.value}.json").read_text(encoding="utf-8")
                artifacts[contract_type.value] = json.loads(raw)
            cls._bundled_cache = cls.from_dict(artifacts)
        return cls._bundled_cache

    @classmethod
    def from_dict(cls, artifacts: Mapping[str, Mapping[str, Any]]) -> "ArtifactTable":
        """Build a table from raw artifact dictionaries keyed by contract name."""
        return cls(artifacts={
            name: ContractArtifact.model_validate(dict(artifact))
            for name, artifact in artifacts.items()
        })

    @classmethod
    def from_directory(cls, path: Union[str, Path]) -> "ArtifactTable":
        """
        Load artifacts from a Truffle build directory.

        Args:
            path: Directory containing Identity.json, DAVToken.json and BasicMission.json

        Raises:
            FileNotFoundError: If one of the artifact files is missing
        """
        directory = Path(path)
        artifacts = {}
        for contract_type in ContractType:
            artifact_path = directory / f"{contract_type.value}.json"
            with artifact_path.open("r", encoding="utf-8") as f:
                artifacts[contract_type.value] = json.load(f)
        logger.debug(f"Loaded contract artifacts from {directory}")
        return cls.from_dict(artifacts)

    def get(self, contract_type: Union[ContractType, str]) -> ContractArtifact:
        """
        Get the artifact for a contract.

        Raises:
            UnknownContractError: If the table has no such contract
        """
        name = _contract_name(contract_type)
        try:
            return self.artifacts[name]
        except KeyError:
            raise UnknownContractError(name) from None

    def address_of(self, contract_type: Union[ContractType, str], network_id: str) -> str:
        """
        Get the deployed address of a contract on a network.

        Raises:
            UnknownContractError: If the contract or the deployment is missing
        """
        artifact = self.get(contract_type)
        deployment = artifact.networks.get(str(network_id))
        if deployment is None:
            raise UnknownContractError(_contract_name(contract_type), str(network_id))
        return deployment.address

    def with_address(
        self,
        contract_type: Union[ContractType, str],
        network_id: str,
        address: str
    ) -> "ArtifactTable":
        """Return a copy of the table with one deployment added."""
        artifact = self.get(contract_type)
        networks = dict(artifact.networks)
        networks[str(network_id)] = NetworkDeployment(address=address)
        artifacts = dict(self.artifacts)
        artifacts[_contract_name(contract_type)] = artifact.model_copy(
            update={"networks": networks}
        )
        return ArtifactTable(artifacts=artifacts)


@dataclass(frozen=True)
class ContractHandle:
    """A resolved contract: its ABI, address and web3 contract instance."""
    contract_type: ContractType
    abi: List[Dict[str, Any]]
    address: str
    contract: Any

    @property
    def event_names(self) -> List[str]:
        return [entry["name"] for entry in self.abi if entry.get("type") == "event"]


def resolve(
    contract_type: Union[ContractType, str],
    config: "SDKConfig",
    chain: "ChainClient"
) -> ContractHandle:
    """
    Resolve a contract on the configured network.

    Args:
        contract_type: Which contract to resolve
        config: SDK configuration (network id and artifact table)
        chain: Chain client used to build the contract instance

    Returns:
        ContractHandle for the contract

    Raises:
        UnknownContractError: If the contract or its deployment on the network is unknown
    """
    try:
        contract_type = ContractType(contract_type)
    except ValueError:
        raise UnknownContractError(_contract_name(contract_type)) from None
    table = config.artifacts
    artifact = table.get(contract_type)
    address = Web3.to_checksum_address(table.address_of(contract_type, config.blockchain_type))
    contract = chain.contract(address=address, abi=artifact.abi)
    return ContractHandle(
        contract_type=contract_type,
        abi=artifact.abi,
        address=address,
        contract=contract,
    )
