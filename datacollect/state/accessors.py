"""
Typed accessors over conversation state slots.

Reads are cached per turn in a TurnStateScope. Nothing is written until
ConversationState.save_changes(), which flushes every changed slot of the
turn in a single atomic put_many().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from datacollect.exceptions import ConfigurationError
from datacollect.state.models import SlotName
from datacollect.storage.state_store import SlotWrite, StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_MISSING = object()


@dataclass
class _CachedSlot:
    value: Optional[BaseModel]
    loaded_payload: Any
    version: Optional[str]
    deleted: bool = False


@dataclass
class TurnStateScope:
    """State loaded and staged during one turn of one conversation."""

    conversation_key: str
    slots: Dict[str, _CachedSlot] = field(default_factory=dict)


class ConversationState:
    """Creates slot accessors and flushes turn-scoped changes to the store."""

    def __init__(self, store: StateStore) -> None:
        if store is None:
            raise ConfigurationError("ConversationState requires a state store")
        self._store = store

    @property
    def store(self) -> StateStore:
        return self._store

    def create_property(
        self, slot_name: SlotName, model: Type[T]
    ) -> "StatePropertyAccessor[T]":
        return StatePropertyAccessor(self, slot_name, model)

    def begin_turn(self, conversation_key: str) -> TurnStateScope:
        return TurnStateScope(conversation_key=conversation_key)

    def load(self, scope: TurnStateScope, slot_name: SlotName) -> _CachedSlot:
        cached = scope.slots.get(slot_name.value)
        if cached is None:
            stored = self._store.get(scope.conversation_key, slot_name.value)
            cached = _CachedSlot(
                value=None,
                loaded_payload=stored.payload if stored else _MISSING,
                version=stored.version if stored else None,
            )
            scope.slots[slot_name.value] = cached
        return cached

    def pending_writes(self, scope: TurnStateScope) -> list[SlotWrite]:
        writes: list[SlotWrite] = []
        for slot_name, cached in scope.slots.items():
            if cached.deleted:
                if cached.loaded_payload is not _MISSING:
                    writes.append(
                        SlotWrite(
                            slot_name,
                            expected_version=cached.version,
                            delete=True,
                        )
                    )
                continue
            if cached.value is None:
                continue
            payload = cached.value.model_dump(mode="json")
            if payload != cached.loaded_payload:
                writes.append(
                    SlotWrite(
                        slot_name, payload=payload, expected_version=cached.version
                    )
                )
        return writes

    def save_changes(self, scope: TurnStateScope) -> None:
        """Flush every changed slot atomically. Raises ConcurrencyConflict on stale reads."""
        writes = self.pending_writes(scope)
        if not writes:
            return
        versions = self._store.put_many(scope.conversation_key, writes)
        for write in writes:
            cached = scope.slots[write.slot_name]
            if write.delete:
                cached.loaded_payload = _MISSING
                cached.version = None
                cached.value = None
                cached.deleted = False
            else:
                cached.loaded_payload = write.payload
                cached.version = versions[write.slot_name]
        logger.debug(
            "Saved %d state slot(s) for %s", len(writes), scope.conversation_key
        )


class StatePropertyAccessor(Generic[T]):
    """Typed read/create/write view over one slot."""

    def __init__(
        self, conversation_state: ConversationState, slot_name: SlotName, model: Type[T]
    ) -> None:
        self._conversation_state = conversation_state
        self.slot_name = slot_name
        self.model = model

    def get(
        self,
        scope: TurnStateScope,
        default_factory: Optional[Callable[[], T]] = None,
    ) -> Optional[T]:
        """
        Return the slot value for this turn.

        When the slot is absent, default_factory (if given) synthesizes a value
        that is kept for the turn but only persisted by save_changes().
        """
        cached = self._conversation_state.load(scope, self.slot_name)
        if cached.value is None and not cached.deleted:
            if cached.loaded_payload is not _MISSING and cached.loaded_payload is not None:
                cached.value = self.model.model_validate(cached.loaded_payload)
            elif default_factory is not None:
                cached.value = default_factory()
        if cached.deleted and default_factory is not None:
            cached.value = default_factory()
            cached.deleted = False
        return cached.value  # type: ignore[return-value]

    def set(self, scope: TurnStateScope, value: T) -> None:
        cached = self._conversation_state.load(scope, self.slot_name)
        cached.value = value
        cached.deleted = False

    def delete(self, scope: TurnStateScope) -> None:
        cached = self._conversation_state.load(scope, self.slot_name)
        cached.value = None
        cached.deleted = True
