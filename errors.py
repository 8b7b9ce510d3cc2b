"""Errors raised while turning a panel submission into generated images."""


class StudioError(Exception):
    """Base class for errors that end a submission with a user-facing message."""


class ValidationError(StudioError):
    """Missing prompt or image; raised before any network call."""


class TranslationFailure(StudioError):
    """The translation call failed. Always recovered by the translator."""


class CallFailure(StudioError):
    """A generation call failed at the transport or API level."""


class EmptyResultError(StudioError):
    """Calls returned, but none of them carried usable image data."""
