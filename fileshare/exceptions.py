"""Custom exception classes for the file sharing server."""

from typing import Iterable


class FileShareException(Exception):
    """
    Base exception class for all file sharing errors.
    """
    pass


class AuthenticationError(FileShareException):
    """
    Base class for every rejected credential.

    Subclasses exist for logging; the HTTP boundary renders all of them
    identically.
    """
    pass


class MissingCredentialError(AuthenticationError):
    """
    Raised when no bearer credential was presented.
    """
    pass


class InvalidCredentialError(AuthenticationError):
    """
    Raised when a credential fails signature or structure checks.
    """
    pass


class ExpiredCredentialError(AuthenticationError):
    """
    Raised when a well-formed credential is past its expiry.
    """
    pass


class UnknownSubjectError(AuthenticationError):
    """
    Raised when a valid credential names a user that does not exist.
    """
    pass


class AuthenticationRequiredError(AuthenticationError):
    """
    Raised when an operation that needs an acting identity receives none.
    """
    pass


class LoginFailedError(FileShareException):
    """
    Raised when an email/password pair does not match a user.
    """
    pass


class UserAlreadyExistsError(FileShareException):
    """
    Raised when registering an email that is already taken.
    """
    pass


class UnknownGranteeError(FileShareException):
    """
    Raised when a grant merge names users that do not exist.
    """

    def __init__(self, missing_ids: Iterable[str]):
        self.missing_ids = sorted(missing_ids)
        super().__init__(f"Unknown grantee(s): {', '.join(self.missing_ids)}")


class InvalidUploadError(FileShareException):
    """
    Raised when an upload request is malformed (empty file, too many files).
    """
    pass


class UnsupportedMediaTypeError(InvalidUploadError):
    """
    Raised when an uploaded file has a media type outside the allow-list.
    """
    pass


class UploadTooLargeError(InvalidUploadError):
    """
    Raised when an uploaded file exceeds the size limit.
    """
    pass


class ForbiddenError(FileShareException):
    """
    Raised when an authenticated user is not permitted to perform an action.
    """
    pass


class FileRecordNotFoundError(FileShareException):
    """
    Raised when a requested file record does not exist.
    """
    pass


class StoredBytesMissingError(FileShareException):
    """
    Raised when a file record exists but its stored bytes do not.
    """
    pass


class TokenNotFoundError(FileShareException):
    """
    Raised when a share token does not resolve to any file.
    """
    pass


class TokenExpiredError(FileShareException):
    """
    Raised when a share token resolves but its link has expired.
    """
    pass


class StorageFailureError(FileShareException):
    """
    Raised when byte storage or metadata persistence fails.
    """
    pass


class DatabaseNotReadyError(FileShareException):
    """
    Raised when a connection is requested outside the ready state.
    """
    pass
