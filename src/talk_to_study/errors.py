"""Error taxonomy for the learning assistant."""


class TalkToStudyError(Exception):
    """Base class for application errors."""


class ImageIntakeError(TalkToStudyError):
    """Raised when an uploaded image cannot be accepted."""

    user_message = "Failed to process image file."


class UnsupportedFormatError(ImageIntakeError):
    """The upload is not an image."""

    user_message = "Unsupported file format. Please upload a valid image (JPEG, PNG)."


class TooLargeError(ImageIntakeError):
    """The upload exceeds the size limit."""

    user_message = "Image is too large. Please use an image under 10MB."


class FileReadError(ImageIntakeError):
    """The upload could not be read."""


class AnalysisError(TalkToStudyError):
    """The content analyzer failed or returned an unusable response."""

    user_message = (
        "Unable to analyze the image. Please ensure the image is clear and try again."
    )


class NarrationError(TalkToStudyError):
    """The speech backend reported a failure."""


class CaptureError(TalkToStudyError):
    """Speech recognition produced no transcript."""


class InvalidTransitionError(TalkToStudyError):
    """A state machine was asked to make a transition it does not allow."""
