import json
import logging
import time
from typing import Any

logger = logging.getLogger("socrates.events")

# fields that may carry speech content or generated coaching text
_REDACTED_KEYS = frozenset({"text", "transcript", "transcript_text", "prompt", "feedback", "words_text"})
_MAX_VALUE_CHARS = 256


def _redact(value: Any) -> dict:
	if isinstance(value, (list, tuple)):
		return {"redacted": True, "items": len(value)}
	return {"redacted": True, "length": len(str(value or ""))}


def _sanitize_value(key: str, value: Any) -> Any:
	if str(key or "").lower() in _REDACTED_KEYS:
		return _redact(value)
	if isinstance(value, str):
		return value if len(value) <= _MAX_VALUE_CHARS else value[:_MAX_VALUE_CHARS] + "..."
	if isinstance(value, (int, float, bool)) or value is None:
		return value
	if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
		# enums such as SessionState
		return value.value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value("", item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, level: int = logging.INFO, **fields) -> None:
	"""One JSON line per session lifecycle event; speech content is never logged."""
	payload = {
		"ts": round(time.time(), 3),
		"component": str(component or "socrates"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	for key, value in fields.items():
		payload[str(key)] = _sanitize_value(str(key), value)
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
