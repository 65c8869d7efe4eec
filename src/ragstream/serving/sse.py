"""Server-Sent Events framing for streamed answers.

Wire format, one frame per event::

    data: {"text": "..."}      fragment
    data: [DONE]               successful end
    data: {"error": "..."}     failed end
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator

from ragstream.chat.orchestrator import AnswerFragment, StreamDone, StreamEvent

DONE_FRAME = "data: [DONE]\n\n"


def encode_event(event: StreamEvent) -> str:
    if isinstance(event, AnswerFragment):
        return f"data: {json.dumps({'text': event.text}, ensure_ascii=False)}\n\n"
    if isinstance(event, StreamDone):
        return DONE_FRAME
    return f"data: {json.dumps({'error': event.message}, ensure_ascii=False)}\n\n"


def sse_frames(events: Iterable[StreamEvent]) -> Iterator[str]:
    for event in events:
        yield encode_event(event)
