from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from finbalance.core.constants import WHATSAPP_JID_SUFFIX


class _EvolutionModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class EvolutionKey(_EvolutionModel):
    remote_jid: Optional[str] = Field(None, alias="remoteJid", examples=["5511999998888@s.whatsapp.net"])


class ExtendedTextMessage(_EvolutionModel):
    text: Optional[str] = None


class EvolutionMessage(_EvolutionModel):
    conversation: Optional[str] = None
    extended_text_message: Optional[ExtendedTextMessage] = Field(None, alias="extendedTextMessage")


class EvolutionData(_EvolutionModel):
    key: Optional[EvolutionKey] = None
    message: Optional[EvolutionMessage] = None


class EvolutionWebhook(_EvolutionModel):
    # any truthy value marks a connectivity check
    test: Any = None
    instance: Optional[str] = None
    data: Optional[EvolutionData] = None


class InboundMessage(BaseModel):
    text: Optional[str] = None
    sender_phone: Optional[str] = None
    instance_id: Optional[str] = None

    @classmethod
    def from_webhook(cls, webhook: EvolutionWebhook) -> "InboundMessage":
        data = webhook.data or EvolutionData()
        message = data.message or EvolutionMessage()
        text = message.conversation or (
            message.extended_text_message.text if message.extended_text_message else None
        )
        remote_jid = data.key.remote_jid if data.key else None
        phone = remote_jid.replace(WHATSAPP_JID_SUFFIX, "") if remote_jid else None
        return cls(text=text or None, sender_phone=phone or None, instance_id=webhook.instance or None)


class TransactionDraftOut(BaseModel):
    description: str
    amount: float
    category: Optional[str] = None
    payment_method: Optional[str] = None


class ParsedIntentOut(BaseModel):
    type: Optional[str] = None
    data: Optional[TransactionDraftOut] = None


class WebhookResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    parsed: Optional[ParsedIntentOut] = None
