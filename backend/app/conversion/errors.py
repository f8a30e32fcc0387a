"""Error kinds for a conversion request. All are terminal; none are retried."""


class ConversionError(Exception):
    """Base for every failure a conversion request can end in."""

    kind = "ConversionError"
    status_code = 500
    public_message = "Error processing image."


class ClientInputError(ConversionError):
    """The upload itself is unacceptable; reported back as a 400."""

    status_code = 400


class MissingFile(ClientInputError):
    kind = "MissingFile"
    public_message = "No file uploaded."


class UnsupportedSourceType(ClientInputError):
    kind = "UnsupportedSourceType"
    public_message = "Unsupported source image type."


class PayloadTooLarge(ClientInputError):
    kind = "PayloadTooLarge"
    public_message = "File size exceeds the upload limit."

    def __init__(self, size: int, limit: int):
        super().__init__(f"Upload of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit
        self.public_message = f"File size exceeds the {limit // (1024 * 1024)}MB limit."


class UnsupportedTargetFormat(ClientInputError):
    kind = "UnsupportedTargetFormat"
    public_message = "Invalid format."


class ProcessingError(ConversionError):
    """Server-side failure; the client only ever sees the generic message."""

    status_code = 500


class DecodeError(ProcessingError):
    kind = "DecodeError"


class EncodeError(ProcessingError):
    kind = "EncodeError"


class PublishError(ProcessingError):
    kind = "PublishError"


class IntakeError(ProcessingError):
    """Raw upload bytes could not be written to the intake store."""

    kind = "IntakeError"
