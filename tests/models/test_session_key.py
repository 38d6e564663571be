"""Tests for session key derivation."""
from slackwire.models.session_key import (
    SessionKey,
    coordinates_for,
    scheduled_coordinates,
    session_key,
    slack_coordinates,
)

def test_same_coordinates_same_key():
    """Identical coordinates always produce the same key"""
    first = session_key(["slack", "C1", "1700000000.0001"])
    second = session_key(["slack", "C1", "1700000000.0001"])
    assert first == second
    assert isinstance(first, SessionKey)

def test_missing_thread_is_omitted():
    """A missing thread is left out rather than replaced by a placeholder"""
    assert session_key(["slack", "C1", None]) == "slack:C1"
    assert session_key(["slack", "C1", ""]) == "slack:C1"
    assert slack_coordinates("C1") == ["slack", "C1"]
    assert slack_coordinates("C1", "T1") == ["slack", "C1", "T1"]

def test_different_threads_different_keys():
    assert session_key(slack_coordinates("C1", "T1")) != session_key(slack_coordinates("C1", "T2"))
    assert session_key(slack_coordinates("C1", "T1")) != session_key(slack_coordinates("C2", "T1"))

def test_direct_messages_collapse_to_channel():
    """Direct messages in one channel share a session regardless of timestamp"""
    keys = {
        session_key(coordinates_for({
            "platform": "slack",
            "event_type": "direct_message",
            "channel": "D1",
            "thread_ts": ts,
            "ts": ts,
        }))
        for ts in ["1.0001", "2.0002", "3.0003"]
    }
    assert keys == {"slack:D1"}

def test_mentions_key_on_thread():
    metadata = {"platform": "slack", "event_type": "app_mention", "channel": "C1", "thread_ts": "T1"}
    assert coordinates_for(metadata) == ["slack", "C1", "T1"]

def test_scheduled_keys_are_unique():
    """Scheduled runs never share a session, even within one clock tick"""
    keys = {session_key(scheduled_coordinates("daily-news")) for _ in range(500)}
    assert len(keys) == 500
    assert all(key.startswith("daily-news:") for key in keys)

def test_scheduled_explicit_nonce():
    assert scheduled_coordinates("daily-news", "42") == ["daily-news", "42"]
