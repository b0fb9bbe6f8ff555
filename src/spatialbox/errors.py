"""Exceptions raised while loading and saving box trees."""


class BoxError(Exception):
    """Base class for all box tree errors."""

    pass


class MalformedHeaderError(BoxError):
    """A box header is unreadable, truncated or declares an impossible size."""

    pass


class BoundsExceededError(BoxError):
    """A box extends past the end of its parent or of the file."""

    pass


class MissingMandatoryBoxError(BoxError):
    """A required top-level box (moov or mdat) is absent."""

    pass


class UnsupportedOperationError(BoxError):
    """The operation is not supported for this kind of container."""

    pass


class BoxIOError(BoxError, OSError):
    """Seek, read or write failure on the input or output stream."""

    pass
