import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable

from core.config import (
    LIVE_FEEDBACK_INTERVAL_MS,
    SURFACE_TRANSCRIPTION_ERRORS,
    TRANSPORT_FLUSH_TIMEOUT_SEC,
    TRANSPORT_MAX_RECONNECTS,
    TRANSPORT_RECONNECT_DELAY_MS,
)
from core.logger import log_event
from core.state import AnalysisMode, SessionState
from socrates.analysis.models import AnalysisReport
from socrates.analysis.pipeline import AnalysisPipeline
from socrates.services.deepgram_stream import ReconnectGuard
from socrates.services.speech_transport import (
    InterimText,
    SpeechConfig,
    SpeechTransport,
    TransportEnded,
    TransportEvent,
    TransportFailed,
    WordsFinalized,
)
from socrates.session.controller import SessionController
from socrates.session.live_gate import LiveFeedbackGate
from socrates.session.messages import (
    AnalysisError,
    Command,
    EndStream,
    FinalAnalysis,
    InterimTranscript,
    LiveFeedback,
    OutboundEvent,
    SetAnalysisMode,
    StartStream,
    SubmitAudio,
    TranscriptionError,
    TranscriptUpdate,
)
from socrates.session.session import Session
from socrates.system_metrics import increment_metric
from socrates.transcript.models import TimedWord

logger = logging.getLogger("session")

EmitFn = Callable[[OutboundEvent], Awaitable[None]]

NO_TRANSCRIPT_MESSAGE = "No transcript was generated to analyze."
ANALYSIS_FAILED_MESSAGE = "Failed to analyze the presentation."
TRANSCRIPTION_ERROR_MESSAGE = "Speech recognition error occurred; reconnecting."


class SessionOrchestrator:
    """
    Lifecycle owner for one connection.

    Idle -> Streaming on start(); Streaming -> Finalizing -> Idle on
    end_stream(); any state -> Closed on disconnect(). Transport events are
    consumed by a single reader task, so transcript appends are sequential.
    Live analysis runs as a detached task over a transcript snapshot; final
    analysis is awaited by end_stream().
    """

    def __init__(
        self,
        transport: SpeechTransport,
        pipeline: AnalysisPipeline,
        emit: EmitFn,
        session: Session | None = None,
        speech_config: SpeechConfig | None = None,
        live_interval_ms: int = LIVE_FEEDBACK_INTERVAL_MS,
        reconnect_delay_ms: int = TRANSPORT_RECONNECT_DELAY_MS,
        max_reconnects: int = TRANSPORT_MAX_RECONNECTS,
        flush_timeout_sec: float = TRANSPORT_FLUSH_TIMEOUT_SEC,
        surface_transcription_errors: bool = SURFACE_TRANSCRIPTION_ERRORS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.pipeline = pipeline
        self.session = session or Session()
        self.speech_config = speech_config or SpeechConfig()
        self.flush_timeout_sec = max(0.0, float(flush_timeout_sec))
        self.surface_transcription_errors = surface_transcription_errors
        self.controller = SessionController()
        self.gate = LiveFeedbackGate(interval_sec=live_interval_ms / 1000.0, clock=clock)
        self.reconnect = ReconnectGuard(
            self._reconnect,
            delay_sec=reconnect_delay_ms / 1000.0,
            max_attempts=max_reconnects,
            should_reconnect=lambda: self.session.state == SessionState.STREAMING,
        )
        self._emit_fn = emit
        self._loop: asyncio.AbstractEventLoop | None = None
        self._events: asyncio.Queue = asyncio.Queue()
        self._reader: asyncio.Task | None = None
        self._stream_ended = asyncio.Event()
        self._live_task: asyncio.Task | None = None
        self._finalize_task: asyncio.Task | None = None

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def state(self) -> SessionState:
        return self.session.state

    def _log_event(self, event: str, **fields) -> None:
        log_event("session", event, self.session_id, **fields)

    # ================= EMISSION =================

    async def _emit(self, event: OutboundEvent) -> None:
        if self.session.closed:
            return
        try:
            await self._emit_fn(event)
        except Exception as exc:
            logger.warning("emit failed | session_id=%s event=%s err=%s", self.session_id, type(event).__name__, exc)

    # ================= TRANSPORT =================

    def _sink(self, event: TransportEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("transport event after loop shutdown dropped | session_id=%s", self.session_id)
            return
        loop.call_soon_threadsafe(self._events.put_nowait, event)

    def _current_stream_id(self) -> int | None:
        stream = self.session.stream
        return stream.stream_id if stream is not None else None

    async def _open_stream(self) -> bool:
        stream_id = self.session.next_stream_id()
        try:
            stream = await self.transport.open(self.speech_config, stream_id, self._sink)
        except Exception as exc:
            logger.warning("recognition stream open failed | session_id=%s stream=%s err=%s", self.session_id, stream_id, exc)
            return False

        if self.session.state != SessionState.STREAMING:
            # session ended or closed while the handshake was in progress
            stream.abort()
            return True

        self.session.stream = stream
        self._stream_ended.clear()
        self._log_event("stream_opened", stream_id=stream_id)
        return True

    async def _reconnect(self) -> bool:
        increment_metric("transport_reconnects", 1)
        return await self._open_stream()

    def _transport_available(self) -> bool:
        return bool(getattr(self.transport, "enabled", True))

    # ================= LIFECYCLE =================

    async def start(self) -> None:
        if self.session.state != SessionState.IDLE:
            return

        self._loop = asyncio.get_running_loop()
        if self._reader is None or self._reader.done():
            self._reader = self.controller.create_task(self._consume_events(), name=f"reader-{self.session_id}")

        self.session.state = SessionState.STREAMING
        self.gate.reset()
        self._log_event("stream_started", analysis_mode=self.session.analysis_mode.value)

        if not self._transport_available():
            logger.warning("speech transport unavailable | session_id=%s", self.session_id)
            return
        if not await self._open_stream():
            self.reconnect.schedule()

    def submit_audio(self, audio: bytes) -> None:
        stream = self.session.stream
        if self.session.state != SessionState.STREAMING or stream is None or not stream.is_open:
            increment_metric("audio_chunks_dropped", 1)
            return
        try:
            stream.write(audio)
        except Exception as exc:
            logger.warning("audio write failed | session_id=%s err=%s", self.session_id, exc)

    def inject_words(self, words: Iterable[TimedWord]) -> None:
        """Feeds words through the transport event path (QA mode, tests)."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        stream_id = self._current_stream_id() or 0
        self._sink(WordsFinalized(stream_id=stream_id, words=tuple(words)))

    def set_analysis_mode(self, mode) -> AnalysisMode:
        self.session.analysis_mode = AnalysisMode.parse(mode)
        self._log_event("analysis_mode_set", analysis_mode=self.session.analysis_mode.value)
        return self.session.analysis_mode

    async def handle_command(self, command: Command) -> None:
        if isinstance(command, SubmitAudio):
            self.submit_audio(command.audio)
        elif isinstance(command, SetAnalysisMode):
            self.set_analysis_mode(command.mode)
        elif isinstance(command, StartStream):
            await self.start()
        elif isinstance(command, EndStream):
            self.request_end_stream()
        else:
            raise TypeError(f"unsupported session command: {type(command).__name__}")

    def request_end_stream(self) -> asyncio.Task | None:
        """Runs end_stream() as a session task so the receive loop keeps going."""
        if self._finalize_task is not None and not self._finalize_task.done():
            return self._finalize_task
        if self.session.state not in (SessionState.STREAMING, SessionState.IDLE):
            return None
        self._finalize_task = self.controller.create_task(self.end_stream(), name=f"finalize-{self.session_id}")
        return self._finalize_task

    async def end_stream(self) -> AnalysisReport | None:
        if self.session.state not in (SessionState.STREAMING, SessionState.IDLE):
            return None

        self.session.state = SessionState.FINALIZING
        self.gate.invalidate()
        self._cancel_live_analysis()
        await self.reconnect.cancel()
        self._log_event("finalizing", words=len(self.session.transcript))

        await self._flush_stream()
        if self.session.closed:
            return None

        words = self.session.transcript.snapshot()
        mode = self.session.analysis_mode.value
        report = None
        if not words:
            logger.info("No transcript data to analyze | session_id=%s", self.session_id)
            increment_metric("final_analyses_failed", 1)
            await self._emit(AnalysisError(message=NO_TRANSCRIPT_MESSAGE))
        else:
            try:
                report = await self.pipeline.run(words, mode=mode, kind="final")
            except Exception as exc:
                logger.error("final analysis failed | session_id=%s err=%s", self.session_id, exc)
                increment_metric("final_analyses_failed", 1)
                await self._emit(AnalysisError(message=ANALYSIS_FAILED_MESSAGE, error=str(exc)))
            else:
                increment_metric("final_analyses_completed", 1)
                await self._emit(FinalAnalysis(report=report))

        if not self.session.closed:
            self.session.transcript.clear()
            self.session.state = SessionState.IDLE
            self._log_event("finalized", delivered=report is not None)
        return report

    async def _flush_stream(self) -> None:
        stream = self.session.stream
        if stream is not None:
            try:
                await stream.close()
            except Exception as exc:
                logger.warning("recognition stream close failed | session_id=%s err=%s", self.session_id, exc)
            try:
                await asyncio.wait_for(self._stream_ended.wait(), timeout=self.flush_timeout_sec)
            except asyncio.TimeoutError:
                logger.warning("recognition stream flush timed out | session_id=%s", self.session_id)
            self.session.stream = None

        # words already queued by the transport still belong to this session
        try:
            await asyncio.wait_for(self._events.join(), timeout=self.flush_timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("transport event drain timed out | session_id=%s", self.session_id)

    async def disconnect(self, reason: str = "client_disconnect") -> None:
        if self.session.closed:
            return

        previous = self.session.state
        self.session.state = SessionState.CLOSED
        self.gate.invalidate()
        await self.reconnect.stop()

        stream = self.session.stream
        self.session.stream = None
        if stream is not None:
            stream.abort()
        self.session.transcript.clear()

        await self.controller.stop()
        self._log_event("disconnected", reason=reason, previous_state=previous.value)

    # ================= EVENT HANDLING =================

    async def _consume_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self.handle_transport_event(event)
            except Exception as exc:
                logger.exception("transport event handling failed | session_id=%s err=%s", self.session_id, exc)
            finally:
                self._events.task_done()

    async def handle_transport_event(self, event: TransportEvent) -> None:
        if isinstance(event, WordsFinalized):
            await self._on_words_finalized(event)
        elif isinstance(event, InterimText):
            if self.session.state in (SessionState.STREAMING, SessionState.FINALIZING) and event.text.strip():
                await self._emit(InterimTranscript(text=event.text))
        elif isinstance(event, TransportFailed):
            await self._on_transport_failed(event)
        elif isinstance(event, TransportEnded):
            await self._on_transport_ended(event)
        else:
            raise TypeError(f"unsupported transport event: {type(event).__name__}")

    async def _on_words_finalized(self, event: WordsFinalized) -> None:
        if self.session.state not in (SessionState.STREAMING, SessionState.FINALIZING):
            return
        appended = self.session.transcript.append(event.words)
        if not appended:
            return

        await self._emit(TranscriptUpdate(text=" ".join(w.text for w in event.words)))

        if self.session.state == SessionState.STREAMING:
            self._maybe_start_live_analysis()

    def _maybe_start_live_analysis(self) -> None:
        if not self.session.transcript or not self.gate.is_due():
            return

        token = self.gate.try_acquire()
        if token is None:
            increment_metric("live_analyses_skipped", 1)
            self._log_event("live_analysis_skipped", reason="in_flight")
            return

        snapshot = self.session.transcript.snapshot()
        mode = self.session.analysis_mode.value
        increment_metric("live_analyses_started", 1)
        self._log_event("live_analysis_started", words=len(snapshot), analysis_mode=mode)
        self._live_task = self.controller.create_task(
            self._run_live_analysis(snapshot, mode, token),
            name=f"live-{self.session_id}",
        )

    def _cancel_live_analysis(self) -> None:
        task = self._live_task
        self._live_task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        increment_metric("live_analyses_discarded", 1)
        self._log_event("live_analysis_cancelled")

    async def _run_live_analysis(self, words, mode: str, token: int) -> None:
        try:
            report = await self.pipeline.run(words, mode=mode, kind="live")
        except Exception as exc:
            logger.warning("live analysis failed | session_id=%s err=%s", self.session_id, exc)
            return
        finally:
            self.gate.release(token)

        if not self.gate.is_current(token) or self.session.closed:
            increment_metric("live_analyses_discarded", 1)
            self._log_event("live_analysis_discarded")
            return
        await self._emit(LiveFeedback(report=report))

    async def _on_transport_failed(self, event: TransportFailed) -> None:
        if event.stream_id != self._current_stream_id():
            return

        increment_metric("transport_errors", 1)
        self._log_event("transport_error", stream_id=event.stream_id, cause=event.cause)
        stream = self.session.stream
        self.session.stream = None
        if stream is not None:
            stream.abort()

        if self.session.state == SessionState.FINALIZING:
            self._stream_ended.set()
            return
        if self.session.state != SessionState.STREAMING:
            return

        if self.surface_transcription_errors:
            await self._emit(TranscriptionError(message=TRANSCRIPTION_ERROR_MESSAGE))
        self.reconnect.schedule()

    async def _on_transport_ended(self, event: TransportEnded) -> None:
        if event.stream_id != self._current_stream_id():
            return

        if self.session.state == SessionState.FINALIZING:
            self._stream_ended.set()
            return

        if self.session.state == SessionState.STREAMING:
            logger.warning("recognition stream ended unexpectedly | session_id=%s stream=%s", self.session_id, event.stream_id)
            await self._on_transport_failed(TransportFailed(stream_id=event.stream_id, cause="stream ended"))
