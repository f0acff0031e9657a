"""Per-sender conversation state, held in memory only.

A sender is in exactly one of three states:

- ``Idle``: nothing pending (no entry is stored),
- ``AwaitingDescription``: an upload is buffered and the next non-blank
  text becomes its description,
- ``AwaitingSelection``: a search was ambiguous and the next reply should
  pick one of the candidates by number.
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from lecturebot.models import DocumentRecord


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class AwaitingDescription(BaseModel):
    """An upload that passed the duplicate check and waits for a description."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["awaiting_description"] = "awaiting_description"
    data: bytes
    content_hash: str
    original_name: str = ""


class AwaitingSelection(BaseModel):
    """Equally ranked search results, numbered from 1 in this order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["awaiting_selection"] = "awaiting_selection"
    candidates: tuple[DocumentRecord, ...]


SessionState = Union[Idle, AwaitingDescription, AwaitingSelection]

IDLE = Idle()


class SessionStore:
    """Keyed store of session states with per-sender locking.

    Callers that read a state and then overwrite it must hold
    ``lock(sender_id)`` for the whole read-modify-write. The individual
    operations never suspend, so they are atomic within the event loop.
    """

    def __init__(self) -> None:
        self._states: dict[str, SessionState] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock(self, sender_id: str) -> asyncio.Lock:
        """Return the lock serialising events for *sender_id*.

        Locks are only kept alive while someone holds a reference, so
        senders that went quiet do not accumulate locks.
        """
        lock = self._locks.get(sender_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[sender_id] = lock
        return lock

    def get(self, sender_id: str) -> SessionState:
        return self._states.get(sender_id, IDLE)

    def set(self, sender_id: str, state: SessionState) -> None:
        """Replace the sender's state. Setting Idle removes the entry."""
        if isinstance(state, Idle):
            self._states.pop(sender_id, None)
        else:
            self._states[sender_id] = state

    def clear(self, sender_id: str) -> None:
        self._states.pop(sender_id, None)

    def clear_if(self, sender_id: str, expected: SessionState) -> bool:
        """Clear the sender's state only if it is still *expected*."""
        if self._states.get(sender_id) is expected:
            del self._states[sender_id]
            return True
        return False

    def __contains__(self, sender_id: object) -> bool:
        return sender_id in self._states

    def __len__(self) -> int:
        return len(self._states)
