from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import final

import aiofiles
from pyrogram import raw
from pyrogram.client import Client
from pyrogram.errors import FileMigrate, FloodWait, InternalServerError, RPCError
from tenacity import (
    RetryCallState,
    RetryError,
    retry,
    stop_after_attempt,
    wait_exponential,
)

from ..config.settings import DownloadConfig
from ..exceptions import TransferError
from ..utils.log import log, log_debug

ProgressCallback = Callable[[int, int], None]


class MediaClient:
    """
    Download capability shared by media objects.

    Wraps an already started Pyrogram client and never starts or stops it.
    A single instance may be used by any number of concurrent downloads.
    """

    def __init__(self, client: Client, config: DownloadConfig | None = None) -> None:
        self._client = client
        self._config = config or DownloadConfig()
        self.progress: ProgressCallback | None = None

    @property
    def chunk_size(self) -> int:
        return self._config.chunk_size

    @final
    async def _should_retry(self, retry_state: RetryCallState) -> bool:
        """Return True if the failed chunk request is worth repeating."""
        if not retry_state.outcome:
            return False
        exc = retry_state.outcome.exception()

        if isinstance(exc, asyncio.CancelledError):
            return False
        return isinstance(exc, (FloodWait | InternalServerError | ConnectionError | TimeoutError))

    @final
    def _wait(self, retry_state: RetryCallState) -> float:
        """FloodWait dictates its own delay, other failures back off exponentially."""
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, FloodWait) and isinstance(exc.value, int):
            return float(exc.value)
        backoff = wait_exponential(multiplier=self._config.retries.delay_seconds, max=30)
        return backoff(retry_state)

    @final
    async def _before_sleep(self, retry_state: RetryCallState) -> None:
        """Log before sleeping."""
        if retry_state.outcome and retry_state.next_action:
            log(
                f"❌ [Media] Ошибка: {retry_state.outcome.exception()}. "
                f"Повтор через {retry_state.next_action.sleep:.2f} c...",
                indent=1,
            )

    async def _invoke(self, query: raw.functions.upload.GetFile, dc_id: int | None) -> raw.base.upload.File:
        if dc_id is None:
            return await self._client.invoke(query)
        session = await self._client.get_session(dc_id, is_media=True)
        return await session.invoke(query)

    async def _get_chunk(self, location: raw.base.InputFileLocation, offset: int, dc_id: int | None) -> bytes:
        @retry(
            wait=self._wait,
            stop=stop_after_attempt(self._config.retries.count),
            retry=self._should_retry,
            before_sleep=self._before_sleep,
            retry_error_cls=RetryError,
        )
        async def _request() -> raw.base.upload.File:
            return await self._invoke(
                raw.functions.upload.GetFile(location=location, offset=offset, limit=self.chunk_size), dc_id
            )

        result = await _request()
        if not isinstance(result, raw.types.upload.File):
            raise RuntimeError(f"Unexpected upload.GetFile result: {type(result).__name__}")
        return result.bytes

    async def download_media_at_location(
        self,
        location: raw.base.InputFileLocation,
        destination: Path,
        *,
        total: int = 0,
        progress: ProgressCallback | None = None,
        dc_id: int | None = None,
    ) -> Path:
        """
        Streams the file identified by location into destination.

        dc_id is the data center the file is stored on; requests go through the
        media session of that DC, or through the home session when it is None.
        A FILE_MIGRATE answer moves the download to the DC it names.

        Returns destination on success. Raises TransferError when the remote
        fetch or the local write fails; the partially written file is removed.
        """
        progress = progress or self.progress
        log_debug(f"[Media] GetFile {type(location).__name__} (DC {dc_id}) -> {destination}", indent=1)
        written = 0
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(destination, "wb") as f:
                while True:
                    try:
                        chunk = await self._get_chunk(location, written, dc_id)
                    except FileMigrate as e:
                        if not isinstance(e.value, int) or e.value == dc_id:
                            raise
                        log_debug(f"[Media] Файл хранится в DC {e.value}, переключаюсь.", indent=1)
                        dc_id = e.value
                        continue
                    if chunk:
                        await f.write(chunk)
                        written += len(chunk)
                        if progress:
                            progress(written, total)
                    if len(chunk) < self.chunk_size:
                        break

            # An unknown or estimated total is replaced by the real one.
            if progress and written != total:
                progress(written, written)

        except asyncio.CancelledError:
            self._remove_partial(destination)
            log("⏹️ [Media] Загрузка файла прервана.", indent=1)
            raise

        except RetryError as e:
            self._remove_partial(destination)
            cause = e.last_attempt.exception()
            raise TransferError(f"Download failed after retries: {cause}", location, destination) from cause

        except (RPCError, OSError, RuntimeError) as e:
            self._remove_partial(destination)
            raise TransferError(f"Download failed: {e}", location, destination) from e

        log(f"✅ [Media] Файл сохранён: {destination.name} ({written} байт)", indent=2)
        return destination

    @staticmethod
    def _remove_partial(destination: Path) -> None:
        if destination.exists():
            destination.unlink()
