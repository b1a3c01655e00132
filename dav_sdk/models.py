"""
Data models for the DAV SDK.
"""
from typing import Dict, Any, Optional, List, Sequence, Union, Mapping

from pydantic import BaseModel, Field
from web3 import Web3

from .exceptions import ValidationError


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    transaction_index: int = Field(0, alias="transactionIndex")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = []

    class Config:
        populate_by_name = True


class ContractEvent(BaseModel):
    """A decoded contract event log"""
    event: str
    args: Dict[str, Any] = {}
    block_number: int = Field(..., alias="blockNumber")
    transaction_index: int = Field(..., alias="transactionIndex")
    log_index: int = Field(0, alias="logIndex")
    transaction_hash: str = Field(..., alias="transactionHash")
    address: Optional[str] = None

    class Config:
        populate_by_name = True

    @property
    def position(self):
        """(block number, transaction index) used to order events"""
        return (self.block_number, self.transaction_index)


class Price(BaseModel):
    """Price of a mission or a bid"""
    value: Union[int, str]
    currency: str = "DAV"
    type: Optional[str] = None
    description: Optional[str] = None


PriceLike = Union[Price, Mapping[str, Any], int, str]


def calculate_price(price: Union[PriceLike, Sequence[PriceLike]]) -> Union[int, str]:
    """
    Extract the amount from a price.

    Accepts a bare amount, a Price (or a dict with a ``value`` key) or a
    sequence of those, in which case the first one is used.
    """
    if isinstance(price, (list, tuple)):
        if not price:
            raise ValueError("Cannot calculate price of an empty price list")
        price = price[0]
    if isinstance(price, Price):
        return price.value
    if isinstance(price, Mapping):
        if "value" not in price:
            raise ValidationError(f"Price has no value: {dict(price)!r}")
        return price["value"]
    return price


def _to_plain(value: Any) -> Any:
    """Convert web3 values (HexBytes, AttributeDict) to JSON-friendly ones."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, Mapping):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return value


def convert_receipt(web3_receipt: Mapping[str, Any]) -> TxReceipt:
    """
    Convert a Web3 receipt to our TxReceipt model

    Args:
        web3_receipt: The Web3 transaction receipt

    Returns:
        Our TxReceipt model
    """
    receipt_dict = _to_plain(dict(web3_receipt))
    return TxReceipt.model_validate(receipt_dict)


def convert_event(web3_event: Mapping[str, Any]) -> ContractEvent:
    """Convert a decoded Web3 event log to our ContractEvent model"""
    event_dict = _to_plain(dict(web3_event))
    return ContractEvent.model_validate(event_dict)
