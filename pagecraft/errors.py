from __future__ import annotations


class PageCraftError(Exception):
    """Base class for every failure the composition engine reports."""


class CorruptDocument(PageCraftError):
    pass


class InvalidPageRange(PageCraftError):
    def __init__(
        self,
        message: str,
        *,
        reason: str,
        start: int | None = None,
        end: int | None = None,
        total_pages: int | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.start = start
        self.end = end
        self.total_pages = total_pages


class UnsupportedImageType(PageCraftError):
    def __init__(self, message: str, *, mime_type: str | None = None):
        super().__init__(message)
        self.mime_type = mime_type


class InvalidImage(UnsupportedImageType):
    """The MIME type is supported but the bytes do not decode as that type."""


class EmptyInputSet(PageCraftError):
    def __init__(self, message: str, *, required: int, received: int):
        super().__init__(message)
        self.required = required
        self.received = received


class SerializationFailure(PageCraftError):
    pass


class InvalidAnnotation(PageCraftError):
    pass
