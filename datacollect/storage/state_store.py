"""
Key/value persistence for per-conversation state slots.

Every slot carries an opaque version. Writes must present the version they
read (None means "create, the slot must not exist yet"); a mismatch raises
ConcurrencyConflict and nothing is written. Stores never merge.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from datacollect.exceptions import ConcurrencyConflict, PersistenceError
from datacollect.models.conversation_state import ConversationStateSlot

logger = logging.getLogger(__name__)


def new_version() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class StoredSlot:
    payload: Any
    version: str


@dataclass(frozen=True)
class SlotWrite:
    """One staged change to a slot. delete=True removes the slot."""

    slot_name: str
    payload: Any = None
    expected_version: Optional[str] = None
    delete: bool = False


class StateStore(ABC):
    """Contract for conversation state persistence."""

    @abstractmethod
    def get(self, conversation_key: str, slot_name: str) -> Optional[StoredSlot]:
        """Return the slot payload and version, or None when absent."""
        ...

    @abstractmethod
    def put_many(
        self, conversation_key: str, writes: Sequence[SlotWrite]
    ) -> Dict[str, Optional[str]]:
        """
        Apply all writes atomically or none of them.

        Returns slot_name -> new version (None for deleted slots).
        Raises ConcurrencyConflict if any expected version is stale.
        """
        ...

    def put(
        self,
        conversation_key: str,
        slot_name: str,
        payload: Any,
        expected_version: Optional[str],
    ) -> str:
        versions = self.put_many(
            conversation_key,
            [SlotWrite(slot_name, payload=payload, expected_version=expected_version)],
        )
        return versions[slot_name]

    def delete(
        self, conversation_key: str, slot_name: str, expected_version: str
    ) -> None:
        self.put_many(
            conversation_key,
            [SlotWrite(slot_name, expected_version=expected_version, delete=True)],
        )


def _slot_label(conversation_key: str, slot_name: str) -> str:
    return f"{conversation_key}/{slot_name}"


class MemoryStateStore(StateStore):
    """In-process store. Payloads are deep-copied in and out."""

    def __init__(self) -> None:
        self._items: Dict[Tuple[str, str], StoredSlot] = {}
        self._lock = threading.Lock()

    def get(self, conversation_key: str, slot_name: str) -> Optional[StoredSlot]:
        with self._lock:
            item = self._items.get((conversation_key, slot_name))
        if item is None:
            return None
        return StoredSlot(copy.deepcopy(item.payload), item.version)

    def put_many(
        self, conversation_key: str, writes: Sequence[SlotWrite]
    ) -> Dict[str, Optional[str]]:
        with self._lock:
            for write in writes:
                current = self._items.get((conversation_key, write.slot_name))
                current_version = current.version if current else None
                if current_version != write.expected_version:
                    raise ConcurrencyConflict(
                        _slot_label(conversation_key, write.slot_name),
                        expected=write.expected_version,
                        actual=current_version,
                    )

            versions: Dict[str, Optional[str]] = {}
            for write in writes:
                key = (conversation_key, write.slot_name)
                if write.delete:
                    self._items.pop(key, None)
                    versions[write.slot_name] = None
                else:
                    version = new_version()
                    self._items[key] = StoredSlot(copy.deepcopy(write.payload), version)
                    versions[write.slot_name] = version
        return versions


class SqlStateStore(StateStore):
    """
    SQLAlchemy-backed store.

    Updates are conditional on the stored version, inserts rely on the
    (conversation_key, slot_name) unique constraint. A batch runs in a single
    transaction and is rolled back entirely on the first conflict.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, conversation_key: str, slot_name: str) -> Optional[StoredSlot]:
        try:
            with self._session_factory() as db:
                row = db.execute(
                    select(
                        ConversationStateSlot.payload, ConversationStateSlot.version
                    ).where(
                        ConversationStateSlot.conversation_key == conversation_key,
                        ConversationStateSlot.slot_name == slot_name,
                    )
                ).first()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to read state {_slot_label(conversation_key, slot_name)}"
            ) from e
        if row is None:
            return None
        return StoredSlot(row.payload, row.version)

    def put_many(
        self, conversation_key: str, writes: Sequence[SlotWrite]
    ) -> Dict[str, Optional[str]]:
        versions: Dict[str, Optional[str]] = {}
        with self._session_factory() as db:
            try:
                for write in writes:
                    versions[write.slot_name] = self._apply(db, conversation_key, write)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConcurrencyConflict(
                    conversation_key, expected=None, actual="<exists>"
                ) from e
            except ConcurrencyConflict:
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(
                    f"Failed to write state for {conversation_key}"
                ) from e
        return versions

    def _apply(
        self, db: Session, conversation_key: str, write: SlotWrite
    ) -> Optional[str]:
        label = _slot_label(conversation_key, write.slot_name)
        where = (
            ConversationStateSlot.conversation_key == conversation_key,
            ConversationStateSlot.slot_name == write.slot_name,
        )

        if write.delete:
            if write.expected_version is None:
                existing = db.execute(
                    select(ConversationStateSlot.version).where(*where)
                ).first()
                if existing is not None:
                    raise ConcurrencyConflict(label, actual=existing.version)
                return None
            result = db.execute(
                delete(ConversationStateSlot).where(
                    *where, ConversationStateSlot.version == write.expected_version
                )
            )
            if result.rowcount != 1:
                raise ConcurrencyConflict(label, expected=write.expected_version)
            return None

        version = new_version()
        if write.expected_version is None:
            db.add(
                ConversationStateSlot(
                    conversation_key=conversation_key,
                    slot_name=write.slot_name,
                    payload=write.payload,
                    version=version,
                )
            )
            db.flush()
            return version

        result = db.execute(
            update(ConversationStateSlot)
            .where(*where, ConversationStateSlot.version == write.expected_version)
            .values(payload=write.payload, version=version)
        )
        if result.rowcount != 1:
            raise ConcurrencyConflict(label, expected=write.expected_version)
        logger.debug("Updated state slot %s to version %s", label, version)
        return version
