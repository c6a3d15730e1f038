from fastapi import APIRouter, WebSocket
import asyncio
import json
import logging

from starlette.websockets import WebSocketState

from core.config import QA_MODE, WS_MAX_TEXT_BYTES
from core.logger import log_event
from socrates.analysis.pipeline import AnalysisPipeline
from socrates.services.deepgram_service import DeepgramSpeechTransport
from socrates.services.text_generation import build_text_generation
from socrates.session.messages import OutboundEvent, SubmitAudio, TranscriptionError, parse_command
from socrates.session.orchestrator import SessionOrchestrator
from socrates.session.registry import session_registry
from socrates.system_metrics import decrement_metric, increment_metric
from socrates.transcript.models import TimedWord

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("ws_session")

router = APIRouter()
websocket_send_locks: dict[WebSocket, asyncio.Lock] = {}


class WsDependencyProvider:
    """Shared, stateless collaborators; one orchestrator per connection."""

    def __init__(self):
        self._transport = None
        self._pipeline = None

    def get_transport(self):
        if self._transport is None:
            self._transport = DeepgramSpeechTransport()
        return self._transport

    def get_pipeline(self) -> AnalysisPipeline:
        if self._pipeline is None:
            self._pipeline = AnalysisPipeline(capability=build_text_generation())
        return self._pipeline

    def create_orchestrator(self, emit) -> SessionOrchestrator:
        return SessionOrchestrator(
            transport=self.get_transport(),
            pipeline=self.get_pipeline(),
            emit=emit,
        )


dependency_provider = WsDependencyProvider()


async def _send_text_with_lock(websocket: WebSocket, encoded_payload: str) -> None:
    lock = websocket_send_locks.setdefault(websocket, asyncio.Lock())
    async with lock:
        if websocket.client_state != WebSocketState.CONNECTED:
            return
        await websocket.send_text(encoded_payload)


def _words_from_payload(items) -> list[TimedWord]:
    words = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        text = str(item.get("word") or item.get("text") or "").strip()
        if not text:
            continue
        words.append(
            TimedWord(
                text=text,
                start_time=float(item.get("startTime") or 0.0),
                end_time=float(item.get("endTime") or 0.0),
            )
        )
    return words


@router.websocket("/ws/session")
async def session_ws(websocket: WebSocket):
    await websocket.accept()
    websocket_send_locks.setdefault(websocket, asyncio.Lock())

    async def _safe_send(event: OutboundEvent):
        if websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            encoded = json.dumps(event.to_payload())
        except Exception as exc:
            logger.warning("ws payload encode failed | session_id=%s err=%s", orchestrator.session_id, exc)
            return
        try:
            await _send_text_with_lock(websocket, encoded)
        except Exception as exc:
            logger.warning("ws send failed | session_id=%s err=%s", orchestrator.session_id, exc)

    orchestrator = dependency_provider.create_orchestrator(emit=_safe_send)
    session_id = orchestrator.session_id
    session_registry.register(session_id, orchestrator)
    increment_metric("sessions_active", 1)
    increment_metric("sessions_total", 1)

    initial_mode = websocket.query_params.get("analysisType")
    if initial_mode:
        orchestrator.set_analysis_mode(initial_mode)

    def _log_event(event: str, **fields):
        log_event("ws_session", event, session_id, **fields)

    _log_event("connect", qa_mode=QA_MODE)
    await orchestrator.start()
    if not orchestrator.session.stream and not QA_MODE:
        await _safe_send(TranscriptionError(message="Speech recognition unavailable. Live transcript is paused."))

    stop_reason = "other"
    try:
        while True:
            msg = await websocket.receive()
            session_registry.touch(session_id)

            if msg["type"] == "websocket.disconnect":
                stop_reason = "client_disconnect"
                break

            if msg.get("bytes"):
                await orchestrator.handle_command(SubmitAudio(audio=msg["bytes"]))
                continue

            text_payload = msg.get("text")
            if not text_payload:
                continue
            if len(text_payload.encode("utf-8")) > WS_MAX_TEXT_BYTES:
                logger.warning("WS message too large | session_id=%s", session_id)
                stop_reason = "message_too_large"
                break
            try:
                payload = json.loads(text_payload)
            except json.JSONDecodeError as exc:
                logger.warning("Invalid WS JSON | session_id=%s err=%s", session_id, exc)
                continue
            if not isinstance(payload, dict):
                continue

            if QA_MODE and payload.get("type") == "qa-transcript":
                orchestrator.inject_words(_words_from_payload(payload.get("words")))
                continue

            command = parse_command(payload)
            if command is None:
                _log_event("unknown_message", message_type=str(payload.get("type") or "unknown"))
                continue
            await orchestrator.handle_command(command)
    except Exception as exc:
        stop_reason = "receive_error"
        logger.warning("ws receive loop failed | session_id=%s err=%s", session_id, exc)
    finally:
        await orchestrator.disconnect(reason=stop_reason)
        websocket_send_locks.pop(websocket, None)
        session_registry.mark_inactive(session_id)
        decrement_metric("sessions_active", 1)
        _log_event("disconnect", reason=stop_reason)

