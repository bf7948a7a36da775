from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from webtoolkit.core.uploads import UploadedFile


class ToolkitError(Exception):
    """
    Base exception for all webtoolkit failures.

    The message is meant to be shown to clients as-is (it is what
    error_json puts into the envelope). status_code is the HTTP status a
    host should answer with.
    """

    status_code: int = 400


# JSON exchange


class JSONDecodeFailure(ToolkitError):
    """
    Raised when a request body cannot be decoded into the target type.
    """

    pass


class MalformedJSONError(JSONDecodeFailure):
    def __init__(self, offset: Optional[int] = None) -> None:
        self.offset = offset
        if offset is None:
            msg = "body contains badly formed JSON (unexpected EOF)"
        else:
            msg = f"body contains badly formed JSON at character {offset}"
        super().__init__(msg)


class JSONTypeError(JSONDecodeFailure):
    def __init__(self, field: Optional[str] = None, offset: int = 0) -> None:
        self.field = field
        self.offset = offset
        if field:
            msg = f'body contains incorrect JSON type for field "{field}"'
        else:
            msg = f"body contains incorrect JSON at character {offset}"
        super().__init__(msg)


class BodyTooLargeError(JSONDecodeFailure):
    status_code = 413

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        super().__init__(f"body must not be larger than {max_bytes} bytes")


class EmptyBodyError(JSONDecodeFailure):
    def __init__(self) -> None:
        super().__init__("body must not be empty")


class UnknownFieldError(JSONDecodeFailure):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'body contains unknown key "{field}"')


class MultiplePayloadsError(JSONDecodeFailure):
    def __init__(self) -> None:
        super().__init__("body must not contain more than one JSON payload")


class UnclassifiedJSONError(JSONDecodeFailure):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"error unmarshalling JSON: {detail}")


class PayloadEncodeError(ToolkitError):
    """
    Raised when a response payload cannot be serialized to JSON.
    """

    status_code = 500


class PushError(ToolkitError):
    """
    Raised when a JSON push to a remote endpoint fails at the transport level.
    """

    status_code = 502


# Uploads


class UploadError(ToolkitError):
    """
    Base exception for upload failures.

    uploaded_files holds the files persisted before the failing part.
    """

    def __init__(self, message: str, *, uploaded_files: Sequence["UploadedFile"] = ()) -> None:
        super().__init__(message)
        self.uploaded_files = list(uploaded_files)


class DisallowedFileTypeError(UploadError):
    status_code = 415

    def __init__(self, content_type: str, **kwargs) -> None:
        self.content_type = content_type
        super().__init__(f"files of type '{content_type}' are not allowed", **kwargs)


class PayloadTooLargeError(UploadError):
    status_code = 413

    def __init__(self, max_bytes: int, **kwargs) -> None:
        self.max_bytes = max_bytes
        super().__init__("the uploaded file is too large", **kwargs)


class DirectoryCreateError(UploadError):
    status_code = 500


class FileWriteError(UploadError):
    status_code = 500


class PartReadError(UploadError):
    pass


class NoFileUploadedError(UploadError):
    def __init__(self, **kwargs) -> None:
        super().__init__("no file found in the multipart body", **kwargs)


# Slugs


class SlugError(ToolkitError):
    pass


class EmptyInputError(SlugError):
    def __init__(self) -> None:
        super().__init__("empty string not permitted")


class NoValidCharactersError(SlugError):
    def __init__(self) -> None:
        super().__init__("removing non-characters returns zero length slug")


# Static files


class StaticFileNotFoundError(ToolkitError):
    status_code = 404
