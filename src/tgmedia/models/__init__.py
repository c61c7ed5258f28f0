from .media import (
    UNHANDLED_MEDIA_TYPES,
    Document,
    InputFileLocation,
    Media,
    Photo,
    Uploaded,
    from_raw,
    to_input_location,
)
from .photo_sizes import (
    CachedSize,
    PathSize,
    PhotoSize,
    ProgressiveSize,
    Size,
    SizeEmpty,
    StrippedSize,
    download_size,
    from_raw_size,
    largest,
    size_of,
)

__all__ = [
    "UNHANDLED_MEDIA_TYPES",
    "Document",
    "InputFileLocation",
    "Media",
    "Photo",
    "Uploaded",
    "from_raw",
    "to_input_location",
    "CachedSize",
    "PathSize",
    "PhotoSize",
    "ProgressiveSize",
    "Size",
    "SizeEmpty",
    "StrippedSize",
    "download_size",
    "from_raw_size",
    "largest",
    "size_of",
]
