"""Conversation history models."""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel


class ConversationHistoryEntry(BaseModel):
    """One respondent answer; order in the history encodes time."""

    answer: Optional[str] = None
    text: Optional[str] = None

    @property
    def content(self) -> str:
        return self.answer or self.text or ""


HistoryItem = Union[ConversationHistoryEntry, Mapping[str, Any]]


def entry_text(entry: Any) -> Any:
    """Answer text of a history entry: `answer`, falling back to `text`.

    Accepts ConversationHistoryEntry or any mapping with the same keys.
    Returns whatever is stored (possibly non-string) so callers can score it
    as-is; unknown shapes yield "".
    """
    if isinstance(entry, ConversationHistoryEntry):
        return entry.content
    if isinstance(entry, Mapping):
        return entry.get("answer") or entry.get("text") or ""
    return ""
