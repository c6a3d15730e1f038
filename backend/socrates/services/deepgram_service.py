import asyncio
import logging
import threading

from deepgram import DeepgramClient, LiveOptions, LiveTranscriptionEvents

from core.config import DEEPGRAM_API_KEY, QA_MODE
from socrates.services.speech_transport import (
    EventSink,
    InterimText,
    SpeechConfig,
    TransportEnded,
    TransportFailed,
    TransportOpenError,
    WordsFinalized,
)
from socrates.transcript.models import TimedWord

logger = logging.getLogger("deepgram_service")


def _words_from_alternative(alternative) -> tuple:
    words = []
    for item in getattr(alternative, "words", None) or []:
        text = getattr(item, "punctuated_word", None) or getattr(item, "word", "")
        text = str(text or "").strip()
        if not text:
            continue
        words.append(
            TimedWord(
                text=text,
                start_time=float(getattr(item, "start", 0.0) or 0.0),
                end_time=float(getattr(item, "end", 0.0) or 0.0),
            )
        )
    return tuple(words)


class DeepgramStream:
    """
    One live Deepgram connection. SDK callbacks arrive on SDK threads and are
    handed to the sink, which must be thread-safe.
    """

    def __init__(self, connection, stream_id: int, sink: EventSink):
        self.connection = connection
        self.stream_id = stream_id
        self._sink = sink
        self._lock = threading.Lock()
        self._open = False
        self._ended = False

    @property
    def is_open(self) -> bool:
        return self._open

    def attach(self) -> None:
        self.connection.on(LiveTranscriptionEvents.Transcript, self._on_transcript)
        self.connection.on(LiveTranscriptionEvents.Error, self._on_error)
        self.connection.on(LiveTranscriptionEvents.Close, self._on_close)

    def mark_open(self) -> None:
        self._open = True

    def write(self, audio: bytes) -> None:
        if not self._open:
            return
        if isinstance(audio, bytearray):
            audio = bytes(audio)
        try:
            self.connection.send(audio)
        except Exception as exc:
            logger.warning("[DG] send failed | stream=%s err=%s", self.stream_id, exc)

    def _emit_ended(self) -> None:
        with self._lock:
            if self._ended:
                return
            self._ended = True
        self._sink(TransportEnded(stream_id=self.stream_id))

    def _safe_finish(self) -> None:
        try:
            self.connection.finish()
        except Exception as exc:
            logger.warning("[DG] finish() ignored during cleanup: %s", exc)

    async def close(self) -> None:
        if not self._open:
            self._emit_ended()
            return
        self._open = False
        # finish() sends CloseStream, flushes pending finals and joins SDK threads
        await asyncio.to_thread(self._safe_finish)
        self._emit_ended()
        logger.info("[DG] stream closed | stream=%s", self.stream_id)

    def abort(self) -> None:
        was_open = self._open
        self._open = False
        with self._lock:
            self._ended = True
        if was_open:
            threading.Thread(target=self._safe_finish, daemon=True).start()

    # ==========================
    # SDK CALLBACKS
    # ==========================

    def _on_transcript(self, client, result, **kwargs):
        try:
            channel = result.channel
            if not channel or not channel.alternatives:
                return
            alternative = channel.alternatives[0]

            if result.is_final:
                words = _words_from_alternative(alternative)
                if words:
                    self._sink(WordsFinalized(stream_id=self.stream_id, words=words))
                return

            text = str(alternative.transcript or "").strip()
            if text:
                self._sink(InterimText(stream_id=self.stream_id, text=text))
        except Exception as exc:
            logger.error("Deepgram transcript parse error: %s", exc)

    def _on_error(self, client, error, **kwargs):
        logger.error("Deepgram error event: %s", error)
        self._open = False
        self._sink(TransportFailed(stream_id=self.stream_id, cause=str(error)))

    def _on_close(self, client, close=None, **kwargs):
        self._open = False
        self._emit_ended()


class DeepgramSpeechTransport:
    def __init__(self, api_key: str | None = None, enabled: bool | None = None):
        self.enabled = (not QA_MODE) if enabled is None else enabled
        key = DEEPGRAM_API_KEY if api_key is None else api_key
        self.client = None
        if self.enabled:
            if not key:
                logger.error("[DG] DEEPGRAM_API_KEY not set - speech-to-text will NOT work")
                self.enabled = False
            else:
                self.client = DeepgramClient(key)

    def _options(self, config: SpeechConfig) -> LiveOptions:
        encoding = config.encoding or None
        return LiveOptions(
            model=config.model,
            language=config.language,
            encoding=encoding,
            sample_rate=config.sample_rate if encoding else None,
            channels=config.channels if encoding else None,
            punctuate=config.punctuate,
            smart_format=config.punctuate,
            interim_results=config.interim_results,
        )

    async def open(self, config: SpeechConfig, stream_id: int, sink: EventSink) -> DeepgramStream:
        if not self.enabled or self.client is None:
            raise TransportOpenError("Deepgram transport disabled")

        connection = self.client.listen.live.v("1")
        stream = DeepgramStream(connection, stream_id, sink)
        stream.attach()

        # start() is sync in SDK 3.x and performs the websocket handshake
        started = await asyncio.to_thread(connection.start, self._options(config))
        if started is False:
            raise TransportOpenError("Deepgram live connection refused")
        stream.mark_open()
        logger.info("[DG] stream started | stream=%s language=%s", stream_id, config.language)
        return stream
