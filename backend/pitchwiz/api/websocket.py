from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
import logging
import uuid
import json

from pitchwiz.core.errors import InvalidConfiguration
from pitchwiz.schemas.protocol import (
    CancelRecordingPayload,
    ConfigPayload,
    ConfigResponse,
    ErrorResponse,
    IntervalProblemPayload,
    IntervalProblemResponse,
    PitchResponse,
    RecordingStatusResponse,
    ReportResponse,
    StartRecordingPayload,
    StopRecordingPayload,
    StreamPayload,
)
from pitchwiz.services.analyzers.interval import generate_interval
from pitchwiz.services.session_manager import manager, Session

logger = logging.getLogger(__name__)
router = APIRouter()


async def send_model(websocket: WebSocket, model: BaseModel):
    await websocket.send_text(model.model_dump_json())


async def send_error(websocket: WebSocket, message: str):
    logger.warning(f"Client error: {message}")
    await send_model(websocket, ErrorResponse(message=message))


async def handle_audio(session: Session, websocket: WebSocket, raw: dict):
    payload = StreamPayload.model_validate(raw)
    frames = await run_in_threadpool(
        session.engine.process_stream,
        payload.audio_chunk,
        payload.encoding,
    )
    if frames:
        await send_model(websocket, PitchResponse(frames=frames))


async def handle_config(session: Session, websocket: WebSocket, raw: dict):
    payload = ConfigPayload.model_validate(raw)
    try:
        config = session.pipeline.update_config(**payload.changes())
    except InvalidConfiguration as e:
        await send_error(websocket, f"Invalid configuration: {e}")
        return
    await send_model(websocket, ConfigResponse(config=config))


async def handle_start(session: Session, websocket: WebSocket, raw: dict):
    payload = StartRecordingPayload.model_validate(raw)
    try:
        started = session.start_recording(payload.mode, payload.target_note, payload.reference_note)
    except ValueError as e:
        await send_error(websocket, str(e))
        return
    if not started:
        await send_error(websocket, "Already recording")
        return
    await send_model(websocket, RecordingStatusResponse(is_recording=True, mode=payload.mode))


async def handle_stop(session: Session, websocket: WebSocket, raw: dict):
    StopRecordingPayload.model_validate(raw)
    report = await run_in_threadpool(session.stop_recording)
    if report is None:
        await send_error(websocket, "Not currently recording")
        return
    await send_model(websocket, ReportResponse(report=report))
    logger.info("Report sent")


async def handle_cancel(session: Session, websocket: WebSocket, raw: dict):
    CancelRecordingPayload.model_validate(raw)
    session.cancel_recording()
    await send_model(websocket, RecordingStatusResponse(is_recording=False))


async def handle_interval_problem(session: Session, websocket: WebSocket, raw: dict):
    payload = IntervalProblemPayload.model_validate(raw)
    try:
        problem = generate_interval(payload.level, payload.direction, payload.lowest, payload.highest)
    except ValueError as e:
        await send_error(websocket, str(e))
        return
    await send_model(websocket, IntervalProblemResponse(problem=problem))


HANDLERS = {
    "audio": handle_audio,
    "config": handle_config,
    "start_recording": handle_start,
    "stop_recording": handle_stop,
    "cancel_recording": handle_cancel,
    "interval_problem": handle_interval_problem,
}


@router.websocket("/ws/pitch")
async def pitch_websocket_endpoint(websocket: WebSocket):
    session_id = str(uuid.uuid4())
    await manager.connect(session_id, websocket)
    session = manager.get_session(session_id)
    if not session:
        return

    try:
        while True:
            data = await websocket.receive_text()
            try:
                raw = json.loads(data)
            except json.JSONDecodeError:
                await send_error(websocket, "Message is not valid JSON")
                continue

            if not isinstance(raw, dict):
                await send_error(websocket, "Message must be a JSON object")
                continue

            handler = HANDLERS.get(raw.get("type", "audio"))
            if handler is None:
                await send_error(websocket, f"Unknown message type: {raw.get('type')}")
                continue

            try:
                await handler(session, websocket, raw)
            except ValidationError as e:
                logger.error(f"Validation error: {e}")
                await send_error(websocket, f"Invalid {raw.get('type', 'audio')} message")

    except WebSocketDisconnect:
        logger.info("Disconnected")
    except Exception as e:
        logger.error(f"Error: {e}")
    finally:
        await run_in_threadpool(manager.disconnect, session_id)
