"""Session keys derived from the coordinates of an inbound event.

Platform events are keyed by ``[platform, channel, thread?]``. Direct messages
carry no thread component, so every direct message in a channel lands in the
same session. Scheduled tasks are keyed by ``[task_name, nonce]`` so that no two
runs ever share history.
"""
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

SLACK_PLATFORM = "slack"
KEY_SEPARATOR = ":"

class SessionKey(str):
    """Stable string identity of a session."""

def normalize_coordinates(coordinates: Sequence[Any]) -> List[str]:
    """Drop absent components and stringify the rest."""
    return [str(c) for c in coordinates if c is not None and str(c) != ""]

def session_key(coordinates: Sequence[Any]) -> SessionKey:
    """Derive the session key for a coordinate tuple.

    Args:
        coordinates: Ordered identifiers, e.g. ``["slack", "C123", "1700000000.0001"]``.
            ``None`` or empty components are omitted.

    Returns:
        The session key
    """
    return SessionKey(KEY_SEPARATOR.join(normalize_coordinates(coordinates)))

def slack_coordinates(channel: str, thread_ts: Optional[str] = None) -> List[str]:
    return normalize_coordinates([SLACK_PLATFORM, channel, thread_ts])

def make_nonce() -> str:
    # time_ns alone can repeat within one clock tick
    return f"{time.time_ns()}-{uuid.uuid4().hex[:8]}"

def scheduled_coordinates(task_name: str, nonce: Optional[str] = None) -> List[str]:
    """Coordinates for a scheduled run, unique per call unless a nonce is given."""
    return normalize_coordinates([task_name, nonce or make_nonce()])

def coordinates_for(metadata: Dict[str, Any]) -> List[str]:
    """Coordinates for a normalized platform message.

    Direct messages key on the channel only; mentions key on the thread
    (which is the mention's own ``ts`` when it starts a thread).
    """
    platform = metadata.get("platform", SLACK_PLATFORM)
    if metadata.get("event_type") == "direct_message":
        return normalize_coordinates([platform, metadata.get("channel")])
    return normalize_coordinates([platform, metadata.get("channel"), metadata.get("thread_ts")])
