from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from finbalance.core.constants import ParsedType


class MessageLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    phone_number: Optional[str] = None
    raw_message: str
    parsed_type: Optional[ParsedType] = None
    parsed_data: Optional[dict[str, Any]] = None
    response_sent: Optional[str] = None
    created_at: datetime


class MessageStats(BaseModel):
    total: int
    gastos: int
    ganhos: int
    perguntas: int


class MessageLogList(BaseModel):
    items: list[MessageLog]
    stats: MessageStats


class WhatsAppSettingsIn(BaseModel):
    user_id: str
    evolution_api_url: Optional[str] = Field(None, examples=["https://evolution.example.com"])
    evolution_api_key: Optional[str] = None
    instance_name: Optional[str] = None


class WhatsAppSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    evolution_api_url: Optional[str] = None
    evolution_api_key: Optional[str] = None
    instance_name: Optional[str] = None
    is_connected: Optional[bool] = None


class PhoneLink(BaseModel):
    phone_number: str = Field(..., min_length=8, examples=["5511999998888"])


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
