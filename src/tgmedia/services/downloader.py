from __future__ import annotations

from collections.abc import Callable
from pathlib import Path, PureWindowsPath
from typing import Any, assert_never

from tqdm import tqdm

from ..exceptions import EmptyMediaError
from ..models import Document, Media, Photo, PhotoSize, Uploaded
from ..utils.log import log


def _safe_file_name(name: str | None, fallback: str) -> str:
    """Base name of a sender-supplied file name, or fallback if nothing usable is left."""
    if not name:
        return fallback
    base = PureWindowsPath(name.replace("\x00", "")).name
    if base in ("", ".", ".."):
        return fallback
    return base


def _pick_thumb(photo: Photo, thumb: str | None, use_largest: bool) -> PhotoSize | None:
    if use_largest:
        return photo.largest_thumb()
    for size in photo.thumbs():
        if size.photo_type == thumb:
            return size
    log(f"⚠️ Размер '{thumb}' не найден. Доступны: {[s.photo_type for s in photo.thumbs()]}", indent=2)
    return None


async def download_media(
    media: Media,
    output_path: Path,
    thumb: str | None = None,
    use_largest: bool = False,
) -> Path | None:
    """
    Downloads the media into output_path.

    For photos either the full photo, a thumbnail by photo_type or the largest
    thumbnail is fetched. Returns the written file or None if there was nothing to fetch.
    """
    match media:
        case Photo():
            try:
                photo_id = media.id
            except EmptyMediaError:
                log("⚠️ Фото пустое, загружать нечего.", indent=1)
                return None

            if thumb is None and not use_largest:
                log("🖼️ Загружаю фото...", indent=1)
                return await media.download(output_path / f"{photo_id}.jpg")

            size = _pick_thumb(media, thumb, use_largest)
            if size is None:
                return None
            log(f"🖼️ Загружаю миниатюру '{size.photo_type}' ({size.size()} байт)...", indent=1)
            return await size.download(output_path / f"{photo_id}_{size.photo_type}.jpg")

        case Document():
            try:
                filename = _safe_file_name(media.file_name, str(media.id))
            except EmptyMediaError:
                log("⚠️ Документ пуст, загружать нечего.", indent=1)
                return None
            destination = output_path / filename
            if not destination.resolve().is_relative_to(output_path.resolve()):
                raise ValueError(f"Destination escapes {output_path}: {destination}")
            log(f"📄 Загружаю документ {filename}...", indent=1)
            return await media.download(destination)

        case Uploaded():
            log(f"⚠️ Файл '{media.name}' ещё не отправлен, загрузка невозможна.", indent=1)
            return None

        case _:
            assert_never(media)


def create_progress_callback(indent: int) -> Callable[[int, int], None]:
    pbar: tqdm[Any] | None = None

    def _progress_hook(current: int, total: int) -> None:
        nonlocal pbar
        current_mb = current / (1024 * 1024)
        total_mb = total / (1024 * 1024) if total else None

        if pbar is None:
            pbar = tqdm(
                total=total_mb,
                unit="MB",
                unit_scale=False,
                desc="  " * indent + "🚀 ",
                ncols=80,
                bar_format="{desc}{bar}| {n:.1f} / {total_fmt} {unit} | {elapsed} | {rate_fmt}",
            )

        if total_mb is not None and pbar.total != total_mb:
            pbar.total = total_mb
        pbar.update(current_mb - pbar.n)

        if total and current == total:
            pbar.close()
            pbar = None

    return _progress_hook
