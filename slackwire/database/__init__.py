from slackwire.database.thread_store import ThreadStore, IMMEDIATE, ENQUEUE

__all__ = ["ThreadStore", "IMMEDIATE", "ENQUEUE"]
