from __future__ import annotations

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from finbalance.core.config import Settings
from finbalance.core.constants import DEFAULT_PAYMENT_METHOD, MANUAL_EXPENSE_CATEGORY
from finbalance.db.repository import RecordStore, RecordStoreError
from finbalance.schemas.webhook import (
    EvolutionWebhook,
    InboundMessage,
    ParsedIntentOut,
    WebhookResponse,
)
from finbalance.services.evolution import dispatch_reply
from finbalance.services.parser import ParsedIntent, parse_message
from finbalance.services.summary import answer_question

WEBHOOK_TEST_ACK = "Webhook is working!"
NO_MESSAGE_ACK = "No message to process"
EXPENSE_FAILED_REPLY = "❌ Erro ao registrar gasto. Tente novamente."
INCOME_FAILED_REPLY = "❌ Erro ao registrar ganho. Tente novamente."
UNREGISTERED_REPLY = "⚠️ Número não cadastrado. Acesse o {product} para vincular seu WhatsApp."


def local_today(settings: Settings) -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


async def handle_webhook(
    session: AsyncSession,
    payload: dict[str, Any],
    settings: Settings,
    *,
    today: date | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WebhookResponse:
    webhook = EvolutionWebhook.model_validate(payload)
    if webhook.test:
        logger.info("Webhook test received")
        return WebhookResponse(success=True, message=WEBHOOK_TEST_ACK)

    logger.info("Webhook received", payload=payload)
    inbound = InboundMessage.from_webhook(webhook)
    if not inbound.text:
        logger.info("No message content found in webhook")
        return WebhookResponse(success=True, message=NO_MESSAGE_ACK)

    store = RecordStore(session)
    user_id: str | None = None
    if inbound.sender_phone:
        user_id = await store.find_user_id_by_phone(inbound.sender_phone)

    parsed = parse_message(inbound.text)
    logger.info("Parsed message", parsed=parsed.to_dict(), user_id=user_id)

    try:
        await store.log_message(
            user_id=user_id,
            phone_number=inbound.sender_phone,
            raw_message=inbound.text,
            parsed_type=parsed.type,
            parsed_data=parsed.data.to_dict() if parsed.data else None,
        )
    except RecordStoreError as exc:
        logger.error("Error logging message", error=str(exc))

    reply = await build_reply(
        store,
        parsed,
        inbound.text,
        user_id,
        settings=settings,
        today=today or local_today(settings),
    )

    if reply and inbound.sender_phone and inbound.instance_id:
        await dispatch_reply(
            store,
            user_id=user_id,
            phone_number=inbound.sender_phone,
            instance_name=inbound.instance_id,
            text=reply,
            settings=settings,
            transport=transport,
        )
        try:
            await store.attach_response(inbound.sender_phone, reply)
        except RecordStoreError as exc:
            logger.error("Error saving sent response", error=str(exc))

    return WebhookResponse(success=True, parsed=ParsedIntentOut.model_validate(parsed.to_dict()))


async def build_reply(
    store: RecordStore,
    parsed: ParsedIntent,
    message: str,
    user_id: str | None,
    *,
    settings: Settings,
    today: date,
) -> str | None:
    """Act on a classified message and return the text to send back, if any."""
    if user_id is None:
        return UNREGISTERED_REPLY.format(product=settings.product_name)

    draft = parsed.data
    if parsed.type == "gasto" and draft is not None:
        try:
            await store.add_expense(
                user_id=user_id,
                description=draft.description,
                amount=draft.amount,
                category=draft.category or MANUAL_EXPENSE_CATEGORY,
                payment_method=draft.payment_method or DEFAULT_PAYMENT_METHOD,
                source="whatsapp",
                entry_date=today,
            )
        except RecordStoreError as exc:
            logger.error("Error inserting expense", user_id=user_id, error=str(exc))
            return EXPENSE_FAILED_REPLY
        return f"✅ Gasto registrado!\n💸 {draft.description}: R$ {draft.amount:.2f}"

    if parsed.type == "ganho" and draft is not None:
        try:
            await store.add_income(
                user_id=user_id,
                description=draft.description,
                amount=draft.amount,
                source="whatsapp",
                entry_date=today,
            )
        except RecordStoreError as exc:
            logger.error("Error inserting income", user_id=user_id, error=str(exc))
            return INCOME_FAILED_REPLY
        return f"✅ Ganho registrado!\n💰 {draft.description}: R$ {draft.amount:.2f}"

    if parsed.type == "pergunta":
        return await answer_question(store, user_id, message, today=today)

    return None
