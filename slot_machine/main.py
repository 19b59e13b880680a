"""
Slot machine service entry point.
FastAPI app serving the control API and streaming spin effects over WebSocket.
"""

import time
from collections import deque
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import orjson as json
import uvicorn

from slot_machine.config import AppConfig, settings
from slot_machine.core.logger import init_logging, get_logger
from slot_machine.core.machine import SlotMachine
from slot_machine.core.websocket import ConnectionManager
from slot_machine.routers import api

init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")
ws_logger = get_logger("websocket")


# WebSocket Rate Limiting
WS_MAX_MESSAGES = 10  # Max messages per connection
WS_RATE_LIMIT_SECONDS = 2  # In this time window


# ==================== WebSocket Endpoint ====================


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for live play.
    Supports:
    - spin
    - toggle_guaranteed_win (the Shift+R hotkey)
    - toggle_sound
    - ping
    """
    state = websocket.app.state
    machine: SlotMachine = state.machine
    manager: ConnectionManager = state.ws_manager
    client_ip = websocket.client.host if websocket.client else None

    await manager.connect(websocket, snapshot=machine.session.snapshot())
    timestamps = deque()

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            data = frame.get("bytes") or frame.get("text") or b""

            current_time = time.time()
            while timestamps and timestamps[0] < current_time - WS_RATE_LIMIT_SECONDS:
                timestamps.popleft()

            if len(timestamps) >= WS_MAX_MESSAGES:
                ws_logger.warning("WebSocket rate limit exceeded", extra={"client_ip": client_ip})
                continue
            timestamps.append(current_time)

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue

            msg_type = message.get("type")

            if msg_type == "spin":
                plan = machine.spin()
                if plan is None:
                    await manager.send(websocket, {"type": "spin_rejected", "reason": "spinning"})

            elif msg_type == "toggle_guaranteed_win":
                armed = machine.session.toggle_guaranteed_win()
                await manager.send(websocket, {"type": "guaranteed_win", "enabled": armed})

            elif msg_type == "toggle_sound":
                enabled = machine.session.toggle_sound()
                await manager.send(websocket, {"type": "sound", "enabled": enabled})

            elif msg_type == "ping":
                await manager.send(websocket, {"type": "pong"})

    except WebSocketDisconnect as e:
        manager.disconnect(websocket)
        ws_logger.info(
            "WebSocket disconnected",
            extra={"client_ip": client_ip, "ws_disconnect_code": e.code},
        )
    except Exception as e:
        manager.disconnect(websocket)
        ws_logger.error("WebSocket error", extra={"client_ip": client_ip, "error": str(e)})


# ==================== Global Exception Handler ====================


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions gracefully."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    debug = request.app.state.config.server.debug
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if debug else None,
        },
    )


# ==================== Application Setup ====================


def create_app(app_config: AppConfig = None, rng=None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if app_config is None:
        app_config = settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Let spins that are still playing finish before shutting down
        await app.state.machine.wait_idle()

    app = FastAPI(
        title=app_config.server.name,
        lifespan=lifespan,
        docs_url="/docs" if app_config.server.debug else None,
        redoc_url=None,
    )

    api.configure_rate_limits(app_config.rate_limit)
    app.state.limiter = api.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    if app_config.server.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    ws_manager = ConnectionManager()
    app.state.config = app_config
    app.state.ws_manager = ws_manager
    app.state.machine = SlotMachine.from_config(app_config, ws_manager.broadcast_effect, rng=rng)

    app.include_router(api.router, prefix="/api")
    app.add_api_websocket_route("/ws", websocket_endpoint)

    return app


app = create_app()

logger.info(f"Application '{settings.server.name}' initialized")
logger.info(f"Debug mode: {settings.server.debug}")


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Slot Machine Server")
    parser.add_argument("--host", default=settings.server.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.server.port, help="Port to bind")
    parser.add_argument(
        "--odds-multiplier",
        type=float,
        default=None,
        help="Default odds multiplier when no settings are saved yet",
    )
    args = parser.parse_args()

    if args.odds_multiplier is not None:
        if args.odds_multiplier <= 0:
            parser.error("--odds-multiplier must be positive")
        settings.game.default_odds_multiplier = args.odds_multiplier
        app = create_app(settings)
        logger.info(f"Default odds multiplier set to {args.odds_multiplier}")

    logger.info(f"Starting server on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
