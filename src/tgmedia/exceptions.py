"""Custom exceptions for the application."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class MediaError(Exception):
    """Base exception for media resolution and download errors."""

    pass


class EmptyMediaError(MediaError):
    """Raised when an operation needs the inner photo or document but the record has none."""

    pass


class TransferError(MediaError):
    """Raised when fetching a remote file fails. The download may be retried."""

    def __init__(self, message: str, location: Any, destination: Path) -> None:
        super().__init__(message)
        self.location = location
        self.destination = destination


class UnsupportedSizeError(MediaError, NotImplementedError):
    """Raised when downloading a photo size kind that has no download strategy yet."""

    def __init__(self, size_type: str, photo_type: str) -> None:
        super().__init__(f"Downloading '{size_type}' photo sizes is not implemented (photo_type={photo_type!r})")
        self.size_type = size_type
        self.photo_type = photo_type


class TelegramManagerError(MediaError):
    """Custom exception for errors during Telegram processing."""

    pass
