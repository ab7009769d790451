"""Outbound WhatsApp replies through the Evolution API."""

from __future__ import annotations

import httpx
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from finbalance.core.config import Settings
from finbalance.db.repository import RecordStore


class GatewayError(Exception):
    """Raised when Evolution answers a send request with a non-2xx status."""


async def send_text(
    *,
    base_url: str,
    api_key: str,
    instance_name: str,
    number: str,
    text: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    url = f"{base_url.rstrip('/')}/message/sendText/{instance_name}"
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(
            url,
            json={"number": number, "text": text},
            headers={"apikey": api_key},
        )
    if response.is_error:
        raise GatewayError(f"Evolution returned {response.status_code}: {response.text}")


async def dispatch_reply(
    store: RecordStore,
    *,
    user_id: str | None,
    phone_number: str,
    instance_name: str,
    text: str,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Send ``text`` with the user's own Evolution credentials.

    Never raises: missing credentials, settings lookup errors and delivery
    failures are logged and reported as ``False``.
    """
    if user_id is None:
        logger.info("Skipping WhatsApp reply for unregistered number", phone=phone_number)
        return False

    try:
        gateway = await store.get_whatsapp_settings(user_id)
    except SQLAlchemyError as exc:
        await store.session.rollback()
        logger.error("Error loading WhatsApp settings", user_id=user_id, error=str(exc))
        return False

    if gateway is None or not gateway.evolution_api_url or not gateway.evolution_api_key:
        logger.info("WhatsApp settings not configured for user", user_id=user_id)
        return False

    try:
        await send_text(
            base_url=gateway.evolution_api_url,
            api_key=gateway.evolution_api_key,
            instance_name=gateway.instance_name or instance_name,
            number=phone_number,
            text=text,
            timeout=settings.evolution_timeout,
            transport=transport,
        )
    except (httpx.HTTPError, GatewayError) as exc:
        logger.error("Error sending WhatsApp message", user_id=user_id, error=str(exc))
        return False

    logger.info("WhatsApp response sent successfully", user_id=user_id)
    return True
