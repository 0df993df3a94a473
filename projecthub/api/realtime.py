"""
WebSocket подписка на изменения строк.

    ws://localhost:8000/api/v1/realtime/tasks?project_id=1&api_key=...

Каждое закоммиченное изменение подходящей строки приходит сообщением:
    {"table": "tasks", "event": "UPDATE", "record": {...}}

Параметры запроса (кроме api_key) - фильтры по равенству колонок.
Клиент может прислать "ping" и получит {"type": "pong"}.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from ..models import Base
from ..realtime import ChangeBroker, Subscription
from .dependencies import api_key_is_valid, get_change_broker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

API_KEY_PARAM = "api_key"


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        change = await subscription.get()
        await websocket.send_json(jsonable_encoder(change.to_message()))


@router.websocket("/realtime/{table}")
async def subscribe_to_changes(
    websocket: WebSocket,
    table: str,
    broker: ChangeBroker = Depends(get_change_broker),
):
    """
    Подписка живёт, пока открыт WebSocket; при отключении освобождается.

    Неверный API ключ или неизвестная таблица → закрытие с кодом 1008.
    """
    api_key = websocket.headers.get("x-api-key") or websocket.query_params.get(API_KEY_PARAM)
    if not api_key_is_valid(api_key):
        logger.warning("Realtime connection rejected: invalid API key")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if table not in Base.metadata.tables:
        logger.warning("Realtime connection rejected", extra={"table": table})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    filters = {k: v for k, v in websocket.query_params.items() if k != API_KEY_PARAM}

    await websocket.accept()
    subscription = broker.subscribe(table, **filters)
    sender = asyncio.create_task(_forward(websocket, subscription))
    logger.info("Realtime subscriber connected", extra={"table": table, "filters": filters})

    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        subscription.close()
        logger.info(
            "Realtime subscriber disconnected",
            extra={"table": table, "dropped": subscription.dropped},
        )
