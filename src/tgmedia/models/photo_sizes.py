from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Annotated, Literal, assert_never, cast

import aiofiles
from pydantic import BaseModel, ConfigDict, Field
from pyrogram import raw

from ..exceptions import UnsupportedSizeError
from ..services.media_client import MediaClient


class BasePhotoSize(BaseModel):
    """A single thumbnail slot of a photo, identified by its photo_type letter."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    photo_type: str

    def size(self) -> int:
        """Byte size used to rank sizes of the same photo."""
        return size_of(cast(PhotoSize, self))

    async def download(self, destination: Path) -> Path:
        """Writes this size to destination and returns the path."""
        return await download_size(cast(PhotoSize, self), destination)


class SizeEmpty(BasePhotoSize):
    type: Literal["empty"] = "empty"


class Size(BasePhotoSize):
    type: Literal["size"] = "size"
    width: int
    height: int
    size_bytes: int = Field(alias="size")

    id: int
    access_hash: int
    file_reference: bytes
    dc_id: int | None = None

    client: MediaClient = Field(exclude=True, repr=False)

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, populate_by_name=True)

    def to_input_location(self) -> raw.types.InputPhotoFileLocation:
        """Locator of this thumbnail within the parent photo."""
        return raw.types.InputPhotoFileLocation(
            id=self.id,
            access_hash=self.access_hash,
            file_reference=self.file_reference,
            thumb_size=self.photo_type,
        )


class CachedSize(BasePhotoSize):
    type: Literal["cached"] = "cached"
    width: int
    height: int
    data: bytes


class StrippedSize(BasePhotoSize):
    type: Literal["stripped"] = "stripped"
    data: bytes


class ProgressiveSize(BasePhotoSize):
    type: Literal["progressive"] = "progressive"
    width: int
    height: int
    sizes: list[int]


class PathSize(BasePhotoSize):
    type: Literal["path"] = "path"
    data: bytes


PhotoSize = Annotated[
    SizeEmpty | Size | CachedSize | StrippedSize | ProgressiveSize | PathSize,
    Field(discriminator="type"),
]


def from_raw_size(size: raw.base.PhotoSize, photo: raw.types.Photo, client: MediaClient) -> PhotoSize:
    """Builds a photo size from its wire record, borrowing identity from the parent photo."""
    match size:
        case raw.types.PhotoSizeEmpty():
            return SizeEmpty(photo_type=size.type)
        case raw.types.PhotoSize():
            return Size(
                photo_type=size.type,
                width=size.w,
                height=size.h,
                size=size.size,
                id=photo.id,
                access_hash=photo.access_hash,
                file_reference=photo.file_reference,
                dc_id=photo.dc_id,
                client=client,
            )
        case raw.types.PhotoCachedSize():
            return CachedSize(photo_type=size.type, width=size.w, height=size.h, data=size.bytes)
        case raw.types.PhotoStrippedSize():
            return StrippedSize(photo_type=size.type, data=size.bytes)
        case raw.types.PhotoSizeProgressive():
            return ProgressiveSize(photo_type=size.type, width=size.w, height=size.h, sizes=list(size.sizes))
        case raw.types.PhotoPathSize():
            return PathSize(photo_type=size.type, data=size.bytes)
        case _:
            raise TypeError(f"Unknown photo size record: {type(size).__name__}")


def size_of(size: PhotoSize) -> int:
    match size:
        case SizeEmpty():
            return 0
        case Size():
            return size.size_bytes
        case CachedSize() | StrippedSize() | PathSize():
            return len(size.data)
        case ProgressiveSize():
            return sum(size.sizes)
        case _:
            assert_never(size)


async def _write_bytes(destination: Path, data: bytes) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(destination, "wb") as f:
        await f.write(data)
    return destination


async def download_size(size: PhotoSize, destination: Path) -> Path:
    match size:
        case SizeEmpty():
            return await _write_bytes(destination, b"")
        case Size():
            return await size.client.download_media_at_location(
                size.to_input_location(), destination, total=size.size_bytes, dc_id=size.dc_id
            )
        case CachedSize():
            return await _write_bytes(destination, size.data)
        case StrippedSize() | ProgressiveSize() | PathSize():
            raise UnsupportedSizeError(size.type, size.photo_type)
        case _:
            assert_never(size)


def largest(sizes: Iterable[PhotoSize]) -> PhotoSize | None:
    """
    Returns the size with the greatest size(), or None for an empty input.
    Among equally large sizes the last one wins.
    """
    best: PhotoSize | None = None
    for candidate in sizes:
        if best is None or candidate.size() >= best.size():
            best = candidate
    return best
