class AssistantError(Exception):
    """Base class for errors raised by the slide assistant."""


class CompletionError(AssistantError):
    """Raised when the language model endpoint cannot produce a reply."""


class ConfigError(CompletionError):
    """Missing or rejected credentials / settings. Not worth retrying."""


class TransientError(CompletionError):
    """Timeouts, rate limits and network failures."""


class MalformedResponseError(CompletionError):
    """The endpoint answered, but with nothing usable."""


class TranslationError(AssistantError):
    pass


class DocumentAccessError(AssistantError):
    """The presentation (or an element of it) cannot be reached."""
