"""Exception types raised by slackwire."""


class SlackwireError(Exception):
    """Base class for slackwire errors."""


class ConfigurationError(SlackwireError):
    """A required setting is missing or invalid. Fatal at startup."""


class ToolConfigurationError(ConfigurationError):
    """Two tool sources registered the same tool name."""


class StoreError(SlackwireError):
    """The thread store could not complete an operation.

    Store errors are retryable from the caller's point of view; the store
    itself never retries.
    """


class ThreadNotFoundError(StoreError):
    """No thread exists with the requested id."""
