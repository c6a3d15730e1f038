import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=True)


def _env_flag(name: str, default: str = "false") -> bool:
	return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4o-mini").strip()  # qualitative coaching
FOLLOWUP_MODEL = str(os.getenv("FOLLOWUP_MODEL") or "gpt-4o-mini").strip()
LLM_TIMEOUT_SEC = max(1.0, float(os.getenv("LLM_TIMEOUT_SEC", "20")))
LLM_RETRIES = max(0, int(os.getenv("LLM_RETRIES", "1")))

DEEPGRAM_API_KEY = str(os.getenv("DEEPGRAM_API_KEY") or "").strip()
QA_MODE = _env_flag("QA_MODE")

SPEECH_LANGUAGE = str(os.getenv("SPEECH_LANGUAGE") or "en-US").strip()
SPEECH_MODEL = str(os.getenv("SPEECH_MODEL") or "nova-2").strip()
# empty encoding = containerised audio (WebM/Opus from MediaRecorder), detected by Deepgram
SPEECH_ENCODING = str(os.getenv("SPEECH_ENCODING") or "").strip()
SPEECH_SAMPLE_RATE = max(8000, int(os.getenv("SPEECH_SAMPLE_RATE", "48000")))

LIVE_FEEDBACK_INTERVAL_MS = max(0, int(os.getenv("LIVE_FEEDBACK_INTERVAL_MS", "5000")))
TRANSPORT_RECONNECT_DELAY_MS = max(0, int(os.getenv("TRANSPORT_RECONNECT_DELAY_MS", "1000")))
TRANSPORT_MAX_RECONNECTS = max(0, int(os.getenv("TRANSPORT_MAX_RECONNECTS", "0")))  # 0 = unbounded
TRANSPORT_FLUSH_TIMEOUT_SEC = max(0.0, float(os.getenv("TRANSPORT_FLUSH_TIMEOUT_SEC", "3.0")))
SURFACE_TRANSCRIPTION_ERRORS = _env_flag("SURFACE_TRANSCRIPTION_ERRORS")

FOLLOWUP_WINDOW_SEC = max(1.0, float(os.getenv("FOLLOWUP_WINDOW_SEC", "20")))
FOLLOWUP_WINDOW_MAX_CHARS = max(50, int(os.getenv("FOLLOWUP_WINDOW_MAX_CHARS", "500")))
FOLLOWUP_MAX_WINDOWS = max(1, int(os.getenv("FOLLOWUP_MAX_WINDOWS", "60")))
FOLLOWUP_LIVE_TOTAL = max(1, int(os.getenv("FOLLOWUP_LIVE_TOTAL", "6")))
FOLLOWUP_FINAL_TOTAL = max(1, int(os.getenv("FOLLOWUP_FINAL_TOTAL", "8")))

WS_MAX_TEXT_BYTES = max(1024, int(os.getenv("WS_MAX_TEXT_BYTES", "65536")))
SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))
