"""
Message parameter records.

Each message kind is a pydantic model tagged by its ``type`` field; the
set is closed and deserialize() dispatches on the tag.
"""
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .models import Price


class Location(BaseModel):
    """Geographic coordinates"""
    lat: float
    long: float


class BaseMessageParams(BaseModel):
    """Fields shared by every message parameter record"""
    protocol: str
    type: str
    ttl: Optional[int] = None

    class Config:
        populate_by_name = True
        frozen = True
        extra = "forbid"

    def __init__(self, **values: Any):
        try:
            super().__init__(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {type(self).__name__}: {e}") from e

    @classmethod
    def get_message_type(cls) -> str:
        return cls.model_fields["type"].default

    @classmethod
    def get_message_protocol(cls) -> str:
        return cls.model_fields["protocol"].default

    def serialize(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict using wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MissionParams(BaseMessageParams):
    """Parameters of a drone-charging mission"""
    protocol: Literal["drone_charging"] = "drone_charging"
    type: Literal["mission"] = "mission"
    # Topic used to send messages to the consumer
    id: str
    mission_id: Optional[str] = Field(None, alias="missionId")
    needer_dav_id: Optional[str] = Field(None, alias="neederDavId")
    vehicle_id: Optional[str] = Field(None, alias="vehicleId")
    price: Optional[Union[Price, int, str]] = None


class StatusMessageParams(BaseMessageParams):
    """Parameters of a vessel-charging consumer status message"""
    protocol: Literal["vessel_charging"] = "vessel_charging"
    type: Literal["vessel_status_message"] = "vessel_status_message"
    location: Location


MessageParams = Annotated[
    Union[MissionParams, StatusMessageParams],
    Field(discriminator="type")
]

_message_params_adapter = TypeAdapter(MessageParams)


def deserialize(data: Mapping[str, Any]) -> Union[MissionParams, StatusMessageParams]:
    """
    Rebuild message parameters from their serialized form.

    Raises:
        ValidationError: If the data has an unknown type or invalid fields
    """
    try:
        return _message_params_adapter.validate_python(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid message parameters: {e}") from e
