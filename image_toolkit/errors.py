class ImageToolkitError(Exception):
    """Base class for errors reported by the toolkit."""


class InvalidScale(ImageToolkitError, ValueError):
    """Scale factor below 1, or a resize that would produce an empty surface."""


class DegenerateImage(ImageToolkitError, ValueError):
    """A zero-area surface was supplied."""


class EncodeFailure(ImageToolkitError, RuntimeError):
    """The image encoder could not produce bytes for the requested format."""
