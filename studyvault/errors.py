"""Exception hierarchy for the ingestion core.

Every error carries a client-facing ``kind`` and the HTTP status the API
layer maps it to. Storage-class errors are flagged as retryable so clients
can resend the same request.
"""


class StudyVaultError(Exception):
    """Base exception for all ingestion and storage errors."""

    kind: str = "InternalError"
    status_code: int = 500
    retryable: bool = False


class InvalidInputError(StudyVaultError):
    """Raised when an upload is rejected before any side effect."""

    kind = "InvalidInput"
    status_code = 400


class MissingFileError(InvalidInputError):
    """Raised when the request carries no ``file`` field."""

    kind = "MissingFile"


class InvalidFileTypeError(InvalidInputError):
    """Raised when the declared mimetype is not accepted."""

    kind = "InvalidFileType"


class PayloadTooLargeError(InvalidInputError):
    """Raised when the payload exceeds the configured size limit."""

    kind = "PayloadTooLarge"


class ExtractionFailedError(StudyVaultError):
    """Raised by extractors when a document cannot be parsed."""

    kind = "ExtractionFailed"
    status_code = 400


class BlobStorageError(StudyVaultError):
    """Raised when the blob store cannot complete a read or write."""

    kind = "StorageFailure"
    retryable = True


class BlobNotFoundError(BlobStorageError):
    """Raised when no blob exists for the requested id."""

    kind = "NotFound"
    status_code = 404
    retryable = False


class UploadFailedError(StudyVaultError):
    """Raised when writing an upload to the blob store fails."""

    kind = "UploadFailed"
    retryable = True


class PartialConsistencyError(StudyVaultError):
    """Raised when content was stored but the owner's index was not updated."""

    kind = "PartialConsistency"

    def __init__(self, message: str, blob_id: str) -> None:
        super().__init__(message)
        self.blob_id = blob_id


class AccessDeniedError(StudyVaultError):
    """Raised when a principal requests an object it does not own."""

    kind = "AccessDenied"
    status_code = 403


class EntryNotFoundError(StudyVaultError):
    """Raised when a file id is unknown to the store."""

    kind = "NotFound"
    status_code = 404


class DeletePartialFailureError(StudyVaultError):
    """Raised when a delete passed the ownership check but did not complete."""

    kind = "DeletePartialFailure"
    retryable = True

    def __init__(self, message: str, blob_id: str) -> None:
        super().__init__(message)
        self.blob_id = blob_id


class ProfileStorageError(StudyVaultError):
    """Raised when an owner profile cannot be read or written."""

    kind = "StorageFailure"
    retryable = True
