"""Model-call interface used by the conversation orchestrator."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Literal

PromptRole = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class PromptMessage:
    role: PromptRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatModel(ABC):
    """An opaque text-completion collaborator.

    Implementations raise ``UpstreamFailure`` for any provider error.
    """

    @abstractmethod
    async def invoke(self, messages: List[PromptMessage]) -> str:
        """Return the full assistant reply."""

    @abstractmethod
    def stream(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        """Yield reply text chunks until the reply is complete."""
