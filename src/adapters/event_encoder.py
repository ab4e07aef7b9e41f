"""Codificación del stream de eventos para transportes externos.

Formatos:
- SSE:   `data: {"type": "progress", "progress": 50}` seguido de una línea vacía.
- JSONL: una línea JSON por evento.

La causa de un resultado `Error` viaja bajo la clave `error`; las claves
vacías se omiten.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter

from core.domain.models import CompleteEvent, ErrorEvent, ProgressEvent, StreamEvent

_EVENT_ADAPTER: TypeAdapter[ProgressEvent | CompleteEvent | ErrorEvent] = TypeAdapter(StreamEvent)


def event_payload(event: ProgressEvent | CompleteEvent | ErrorEvent) -> dict[str, Any]:
    return event.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_json_line(event: ProgressEvent | CompleteEvent | ErrorEvent) -> str:
    return json.dumps(event_payload(event), ensure_ascii=False, separators=(",", ":")) + "\n"


def encode_sse(event: ProgressEvent | CompleteEvent | ErrorEvent) -> str:
    return f"data: {json.dumps(event_payload(event), ensure_ascii=False)}\n\n"


def decode_event(payload: str | bytes | dict[str, Any]) -> ProgressEvent | CompleteEvent | ErrorEvent:
    """Inverso de `event_payload`: acepta JSON crudo, una trama SSE o un dict."""

    if isinstance(payload, dict):
        return _EVENT_ADAPTER.validate_python(payload)
    text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    text = text.strip()
    if text.startswith("data:"):
        text = text[len("data:"):].strip()
    return _EVENT_ADAPTER.validate_json(text)
