"""Best-effort delivery of progress events."""

import json
from typing import Any

import structlog
from pydantic import BaseModel

from research_digest.models import EventType, ProgressEvent, stage_key

logger = structlog.get_logger(__name__)

# Only these names can travel on the progress stream
PROGRESS_EVENT_NAMES = frozenset(e.value for e in EventType)


def has_progress_events(stage) -> bool:
    """True when events named after ``stage`` can be delivered."""
    return stage_key(stage) in PROGRESS_EVENT_NAMES


def serialize_payload(payload: Any) -> str | None:
    """Serialize an event payload.

    Strings pass through, pydantic models and containers become JSON.
    """
    if payload is None or isinstance(payload, str):
        return payload
    if isinstance(payload, BaseModel):
        return payload.model_dump_json()
    if isinstance(payload, (list, tuple)):
        return json.dumps(
            [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload],
            default=str,
        )
    return json.dumps(payload, default=str)


def emit_progress(sink, event_type: EventType | str, payload: Any = None) -> None:
    """Push an event to ``sink``, swallowing delivery failures.

    Names outside ``EventType`` are not delivered; ``StageGraph.add_stage``
    warns about such stages when they are registered.

    Args:
        sink: Callable receiving ``ProgressEvent`` objects, or None.
        event_type: Event name.
        payload: Optional payload, serialized with ``serialize_payload``.
    """
    if sink is None:
        return
    if not has_progress_events(event_type):
        logger.debug("progress_event_unsupported", event_type=stage_key(event_type))
        return

    try:
        event = ProgressEvent(event_type=EventType(stage_key(event_type)), data=serialize_payload(payload))
        sink(event)
    except Exception as e:
        logger.warning("progress_delivery_failed", event_type=str(event_type), error=str(e))
