from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.shared.utils.time_utils import parse_timestamp

OWNER_KEY_PATTERN = r"^dot_app_[A-Za-z0-9]{64}$"
DEVICE_ID_PATTERN = r"^[A-F0-9]{12}$"

MIN_TTL_SECONDS = 60
MAX_TTL_SECONDS = 31536000


class DeviceContent(BaseModel):
    """Text shown on the e-paper display."""

    title: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=500)
    signature: Optional[str] = Field(None, max_length=50)
    link: Optional[str] = None


class Device(BaseModel):
    """
    One physical display, stored as JSON under its ``deviceId``.

    Attributes are snake_case; the wire and storage format is camelCase.
    """

    model_config = ConfigDict(populate_by_name=True)

    owner: str = Field(..., min_length=1, max_length=30)
    owner_key: str = Field(..., alias="ownerKey", pattern=OWNER_KEY_PATTERN)
    device_id: str = Field(..., alias="deviceId", pattern=DEVICE_ID_PATTERN)
    name: str = Field(..., min_length=1, max_length=50)
    content: DeviceContent
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def check_timestamp(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_timestamp(value)
        return value

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def is_owned_by(self, owner: str, owner_key: str) -> bool:
        return self.owner == owner and self.owner_key == owner_key


class CreateDeviceRequest(BaseModel):
    key: str = Field(..., min_length=1)
    value: Device
    metadata: Optional[Dict[str, Any]] = None
    ttl: Optional[int] = Field(None, ge=MIN_TTL_SECONDS, le=MAX_TTL_SECONDS)

    @model_validator(mode="after")
    def check_key_matches_device(self):
        if self.key != self.value.device_id:
            raise ValueError("key must equal value.deviceId")
        return self


class UpdateDeviceRequest(CreateDeviceRequest):
    """Full replacement of a device record; creates it when missing."""


class UpdateDeviceContentRequest(BaseModel):
    key: str = Field(..., min_length=1)
    content: DeviceContent


class QueryDevicesByOwner(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owner: str = Field(..., min_length=1)
    owner_key: str = Field(..., alias="ownerKey", pattern=OWNER_KEY_PATTERN)
