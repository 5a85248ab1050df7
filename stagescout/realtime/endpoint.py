"""
Realtime websocket endpoint.

Connect: WS /ws?token={access_token}

Frames are JSON text. A connection starts unidentified; the client sends
``identify`` to appear in the roster and ``send_message`` to relay chat
messages to whoever is online. Persisting a message is the REST layer's job.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from stagescout.config import settings
from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.realtime.message_handler import MessageHandler
from stagescout.realtime.relay import MessageRelay
from stagescout.security.auth import verify_token

logger = logging.getLogger(__name__)

router = APIRouter()

# Single-process presence: one manager per application process
connection_manager = ConnectionManager(identify_policy=settings.PRESENCE_IDENTIFY_POLICY)


def get_connection_manager() -> ConnectionManager:
    return connection_manager


def get_message_relay(manager: ConnectionManager = Depends(get_connection_manager)) -> MessageRelay:
    return MessageRelay(manager)


def get_message_handler(
    manager: ConnectionManager = Depends(get_connection_manager),
    relay: MessageRelay = Depends(get_message_relay),
) -> MessageHandler:
    return MessageHandler(manager, relay)


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="JWT access token"),
    manager: ConnectionManager = Depends(get_connection_manager),
    message_handler: MessageHandler = Depends(get_message_handler),
) -> None:
    """WebSocket endpoint for presence and live chat relay"""
    # Validate token before accepting connection
    authenticated_user_id = None
    if token:
        payload = verify_token(token)
        authenticated_user_id = payload.get('user_id') if payload else None
        if not authenticated_user_id:
            await websocket.close(code=4001)
            return
    elif settings.WS_REQUIRE_TOKEN:
        await websocket.close(code=4001)
        return

    metadata = {
        'ip_address': websocket.client.host if websocket.client else None,
        'user_agent': websocket.headers.get('user-agent'),
        'authenticated_user_id': authenticated_user_id,
    }
    connection_id = await manager.connect(websocket, metadata)

    try:
        await manager.send_to_connection(connection_id, {
            'type': 'connection_established',
            'connection_id': connection_id,
            'timestamp': message_handler.get_current_time()
        })

        # Main message loop
        while True:
            data = await websocket.receive_text()

            if not manager.rate_limit_check(connection_id):
                await manager.send_to_connection(connection_id, message_handler.error('Rate limit exceeded. Please slow down.'))
                continue

            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_to_connection(connection_id, message_handler.error('Invalid JSON format'))
                continue

            try:
                response = await message_handler.handle_message(
                    connection_id, message_data, authenticated_user_id
                )
            except Exception as e:
                logger.exception(f"Error processing frame on connection {connection_id}: {e}")
                response = message_handler.error('Internal server error')

            if response:
                await manager.send_to_connection(connection_id, response)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket connection error for connection {connection_id}: {e}")
    finally:
        await manager.disconnect(connection_id)
