"""Custom exception classes for the FileShelf server."""


class FileShelfError(Exception):
    """
    Base exception class for all FileShelf errors.
    """
    pass


class MissingUploadError(FileShelfError):
    """
    Raised when an upload request carries no file part.
    """
    pass


class StorageUnavailableError(FileShelfError):
    """
    Raised when the storage directory cannot be enumerated.
    """
    pass


class StoredFileNotFoundError(FileShelfError):
    """
    Raised when a requested stored file does not exist.
    """
    pass


class UploadWriteError(FileShelfError):
    """
    Raised when an uploaded file cannot be written to the storage directory.
    """
    pass


class MalformedMessageError(FileShelfError):
    """
    Raised when a notification channel message is not a recognised JSON command.
    """
    pass
