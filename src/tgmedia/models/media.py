from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field
from pyrogram import raw

from ..exceptions import EmptyMediaError
from ..services.media_client import MediaClient
from ..utils.log import log_debug
from .photo_sizes import PhotoSize, Size, from_raw_size, largest

InputFileLocation = raw.types.InputPhotoFileLocation | raw.types.InputDocumentFileLocation

# Media kinds that carry nothing downloadable through this layer.
UNHANDLED_MEDIA_TYPES: tuple[type[Any], ...] = (
    raw.types.MessageMediaEmpty,
    raw.types.MessageMediaGeo,
    raw.types.MessageMediaContact,
    raw.types.MessageMediaUnsupported,
    raw.types.MessageMediaWebPage,
    raw.types.MessageMediaVenue,
    raw.types.MessageMediaGame,
    raw.types.MessageMediaInvoice,
    raw.types.MessageMediaGeoLive,
    raw.types.MessageMediaPoll,
    raw.types.MessageMediaDice,
)


class Photo(BaseModel):
    """A photo attached to a message."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["photo"] = "photo"
    media: raw.types.MessageMediaPhoto
    client: MediaClient = Field(exclude=True, repr=False)

    @classmethod
    def from_photo(cls, photo: raw.types.Photo | raw.types.PhotoEmpty, client: MediaClient) -> Photo:
        """Wraps a bare photo record, e.g. one returned by photos.GetUserPhotos."""
        return cls(media=raw.types.MessageMediaPhoto(photo=photo), client=client)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Photo):
            return NotImplemented
        return self.media == other.media

    @property
    def id(self) -> int:
        """Photo id. Raises EmptyMediaError when the record holds no photo at all."""
        if self.media.photo is None:
            raise EmptyMediaError("Photo media has no inner photo record")
        return self.media.photo.id

    def thumbs(self) -> list[PhotoSize]:
        """All sizes of the photo in wire order, empty if there is no photo."""
        photo = self.media.photo
        if not isinstance(photo, raw.types.Photo):
            return []
        return [from_raw_size(size, photo, self.client) for size in photo.sizes]

    def largest_thumb(self) -> PhotoSize | None:
        return largest(self.thumbs())

    def to_input_location(self) -> raw.types.InputPhotoFileLocation | None:
        photo = self.media.photo
        if not isinstance(photo, raw.types.Photo):
            return None
        return raw.types.InputPhotoFileLocation(
            id=photo.id,
            access_hash=photo.access_hash,
            file_reference=photo.file_reference,
            thumb_size="",
        )

    async def download(self, destination: Path) -> Path | None:
        """Downloads the full photo. Returns None without a remote call if there is no photo."""
        photo = self.media.photo
        location = self.to_input_location()
        if not isinstance(photo, raw.types.Photo) or location is None:
            return None
        # The full photo is served as its biggest remote size.
        total = max((size.size_bytes for size in self.thumbs() if isinstance(size, Size)), default=0)
        return await self.client.download_media_at_location(location, destination, total=total, dc_id=photo.dc_id)


class Document(BaseModel):
    """A document (file, video, voice, sticker...) attached to a message."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["document"] = "document"
    media: raw.types.MessageMediaDocument
    client: MediaClient = Field(exclude=True, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.media == other.media

    def inner_document(self) -> raw.types.Document | None:
        """The document record, None when absent or empty."""
        document = self.media.document
        return document if isinstance(document, raw.types.Document) else None

    @property
    def id(self) -> int:
        """Document id. Raises EmptyMediaError when the record holds no document at all."""
        if self.media.document is None:
            raise EmptyMediaError("Document media has no inner document record")
        return self.media.document.id

    @property
    def mime_type(self) -> str | None:
        document = self.inner_document()
        return document.mime_type if document else None

    @property
    def size(self) -> int | None:
        document = self.inner_document()
        return document.size if document else None

    @property
    def file_name(self) -> str | None:
        document = self.inner_document()
        if not document:
            return None
        for attribute in document.attributes:
            if isinstance(attribute, raw.types.DocumentAttributeFilename):
                return attribute.file_name
        return None

    def to_input_location(self) -> raw.types.InputDocumentFileLocation | None:
        document = self.inner_document()
        if document is None:
            return None
        return raw.types.InputDocumentFileLocation(
            id=document.id,
            access_hash=document.access_hash,
            file_reference=document.file_reference,
            thumb_size="",
        )

    async def download(self, destination: Path) -> Path | None:
        """
        Downloads the document content to destination.

        A record without a document (deleted or degenerate) is not an error:
        nothing is fetched and None is returned.
        """
        document = self.inner_document()
        location = self.to_input_location()
        if document is None or location is None:
            return None
        return await self.client.download_media_at_location(
            location, destination, total=document.size, dc_id=document.dc_id
        )


class Uploaded(BaseModel):
    """A file uploaded to the server but not yet sent; it can only be described."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: Literal["uploaded"] = "uploaded"
    input_file: raw.types.InputFile | raw.types.InputFileBig

    @property
    def name(self) -> str:
        return self.input_file.name


Media = Annotated[Photo | Document | Uploaded, Field(discriminator="type")]


def _is_media_record(media: object) -> bool:
    # Newer layers keep adding MessageMedia* kinds (stories, giveaways, paid media).
    return getattr(media, "QUALNAME", "").startswith("types.MessageMedia")


def from_raw(media: Any, client: MediaClient) -> Media | None:
    """
    Classifies a message media record.

    Photos and documents become typed wrappers; every other media kind yields
    None, meaning the message has nothing this layer can download.
    """
    match media:
        case raw.types.MessageMediaPhoto():
            return Photo(media=media, client=client)
        case raw.types.MessageMediaDocument():
            return Document(media=media, client=client)
        case _ if isinstance(media, UNHANDLED_MEDIA_TYPES) or _is_media_record(media):
            log_debug(f"[Media] Пропускаю медиа без файла: {type(media).__name__}", indent=1)
            return None
        case _:
            raise TypeError(f"Not a message media record: {type(media).__name__}")


def to_input_location(media: Media) -> InputFileLocation | None:
    """Remote locator of the full file, None when the media cannot be fetched."""
    match media:
        case Photo() | Document():
            return media.to_input_location()
        case Uploaded():
            return None
        case _:
            assert_never(media)
