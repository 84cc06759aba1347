"""Split one model stream between the caller and the turn's text buffer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Literal, Optional

StreamEventType = Literal["start", "chunk", "end"]


@dataclass
class ChunkTee:
    """Forward each chunk as it arrives while keeping a copy.

    ``complete`` is only set once the source is exhausted; an abandoned
    stream leaves it False and the buffered text must not be committed.
    """

    source: AsyncIterator[str]
    chunks: List[str] = field(default_factory=list)
    complete: bool = False

    async def __aiter__(self) -> AsyncIterator[str]:
        async for chunk in self.source:
            self.chunks.append(chunk)
            yield chunk
        self.complete = True

    @property
    def text(self) -> str:
        return "".join(self.chunks)


@dataclass(frozen=True)
class StreamEvent:
    type: StreamEventType
    data: Dict[str, Any]
    result: Optional[Any] = None
