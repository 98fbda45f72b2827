"""
FastAPI Application - Real-time socket API plus a small REST surface.

Endpoints:
    WS     /api/v1/rooms/{room_id}/ws     Game socket (JSON messages)
    GET    /api/v1/rooms                  List rooms
    GET    /api/v1/rooms/{room_id}/state  Get a room's snapshot
    DELETE /api/v1/rooms/{room_id}        Close a room
    GET    /health                        Health check

Socket Flow:
    1. Client connects; server sends ROOM_INFO and SYNC_STATE
    2. Client sends JOIN_REQUEST (create=true to open the room)
    3. Client sends ROLL_REQUEST / MOVE_REQUEST on its turn
    4. Server broadcasts DICE_RESULT, MOVE_EXECUTED, SYNC_STATE, ...

Every connection has its own outbound queue drained by a writer task, so
messages reach each client in the order the room produced them.
"""

from typing import Union
import asyncio

from .. import __version__
from ..config import Settings


def create_app(service=None, settings: Settings | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from loguru import logger

    from .service import GameService
    from .schemas import (
        RoomSummary,
        RoomListResponse,
        RoomStateResponse,
        EndRoomResponse,
        ErrorResponse,
        HealthResponse,
    )
    from ..engine_core.action import ErrorCode
    from ..messages import error_message

    settings = settings or (service.settings if service else Settings.from_env())
    api_service = service or GameService(settings=settings)

    app = FastAPI(
        title="Ludo Arena API",
        description="""
Authoritative multiplayer Ludo server.

Clients only send intents (join, roll, move). The server rolls the dice,
validates moves, runs the turn timer and broadcasts every resulting state.
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=message, error_code=error_code).model_dump(mode="json"),
        )

    # =========================================================================
    # Game Socket
    # =========================================================================

    @app.websocket("/api/v1/rooms/{room_id}/ws")
    async def room_socket(websocket: WebSocket, room_id: str):
        """
        Game socket for one client in one room.

        Inbound: JOIN_REQUEST, ROLL_REQUEST, MOVE_REQUEST, START_GAME, ADD_BOT
        Outbound: see ludo_arena.messages
        """
        await websocket.accept()

        outbox: asyncio.Queue = asyncio.Queue()
        connection_id = api_service.connect(room_id, outbox.put_nowait)

        async def writer():
            while True:
                message = await outbox.get()
                await websocket.send_json(message)

        writer_task = asyncio.create_task(writer())
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(frame.get("code", 1000))
                if frame.get("text") is not None:
                    api_service.receive(connection_id, frame["text"])
                else:
                    api_service.deliver(
                        connection_id,
                        error_message(ErrorCode.MALFORMED_MESSAGE, "Only text frames are accepted"),
                    )
        except WebSocketDisconnect:
            logger.debug(f"Socket {connection_id} closed")
        finally:
            api_service.disconnect(connection_id)
            writer_task.cancel()
            outcome = (await asyncio.gather(writer_task, return_exceptions=True))[0]
            if isinstance(outcome, Exception):
                logger.opt(exception=outcome).error(f"Writer for socket {connection_id} failed")

    # =========================================================================
    # Room Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/rooms",
        response_model=RoomListResponse,
        tags=["Rooms"],
        summary="List rooms",
    )
    async def list_rooms() -> RoomListResponse:
        rooms = [RoomSummary(**summary) for summary in api_service.list_rooms()]
        return RoomListResponse(rooms=rooms, count=len(rooms))

    @app.get(
        "/api/v1/rooms/{room_id}/state",
        response_model=RoomStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Get a room's current snapshot",
    )
    async def get_room_state(room_id: str) -> Union[RoomStateResponse, JSONResponse]:
        state = api_service.get_room_state(room_id)
        if state is None:
            return make_error_response(
                ErrorCode.ROOM_NOT_FOUND,
                f"Room {room_id} not found",
                status_code=404,
            )
        return RoomStateResponse(room_id=room_id, state=state)

    @app.delete(
        "/api/v1/rooms/{room_id}",
        response_model=EndRoomResponse,
        tags=["Rooms"],
        summary="Close a room",
    )
    async def end_room(room_id: str) -> EndRoomResponse:
        success = api_service.end_room(room_id)
        return EndRoomResponse(success=success, room_id=room_id)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="ludo-arena",
            version=__version__,
            rooms=len(api_service.list_rooms()),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Ludo Arena API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
