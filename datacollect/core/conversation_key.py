"""Conversation key derivation from an inbound activity."""

from __future__ import annotations

from datacollect.schemas.activity import Activity


def build_conversation_key(activity: Activity) -> str:
    """
    Build a deterministic conversation key: {channel}:{conversation_id}.

    All state slots and the dialog stack are scoped to this key.
    """
    if not activity.conversation_id:
        raise ValueError("Activity has no conversation id")
    return f"{activity.channel.value}:{activity.conversation_id}"
