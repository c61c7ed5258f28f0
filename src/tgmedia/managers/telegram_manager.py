from __future__ import annotations

import asyncio
from types import TracebackType

from pyrogram import raw
from pyrogram.client import Client

from ..config.settings import Settings
from ..exceptions import TelegramManagerError
from ..models.media import Media, from_raw
from ..services.media_client import MediaClient
from ..utils.log import log


class TelegramManager:
    """Owns the Kurigram client session and hands out the shared download handle."""

    def __init__(self) -> None:
        """Initialize the manager."""
        self._initialized = False
        self._client: Client | None = None
        self._handle: MediaClient | None = None
        self._session_name: str = "user_session"
        self._api_id: int = 0
        self._api_hash: str = ""

    async def setup(self, settings: Settings) -> None:
        """Start the Telegram client session."""
        log("✈️ [Telegram] Инициализация Telegram клиента...")
        self._session_name = settings.app.session_name
        self._api_id = settings.telegram_api_id
        self._api_hash = settings.telegram_api_hash

        try:
            self._client = Client(
                self._session_name,
                api_id=self._api_id,
                api_hash=self._api_hash,
            )
            await self._client.start()
            self._handle = MediaClient(self._client, settings.download)
            self._initialized = True
            log("✈️ [Telegram] Клиент запущен.")
        except asyncio.CancelledError:
            log("⏹️ Запуск Telegram клиента прерван пользователем.", indent=1)
            self._initialized = False
            raise
        except Exception:
            self._initialized = False
            log("❌ Не удалось запустить Telegram клиент.", indent=1)
            raise

    async def update_config(self, settings: Settings) -> None:
        """Called when the configuration changes."""
        if not self._initialized:
            await self.setup(settings)
            return

        if (
            self._api_id != settings.telegram_api_id
            or self._api_hash != settings.telegram_api_hash
            or self._session_name != settings.app.session_name
        ):
            log("✈️ [Telegram] Конфигурация изменилась, перезапускаю клиент...")
            await self.shutdown()
            await self.setup(settings)
            return

        assert self._client is not None
        self._handle = MediaClient(self._client, settings.download)
        log("✈️ [Telegram] Настройки загрузки обновлены.")

    async def shutdown(self) -> None:
        """Stop the Telegram client session."""
        if self._client and self._client.is_connected:
            await self._client.stop()
            log("✈️ [Telegram] Клиент остановлен.")
        self._handle = None
        self._initialized = False

    async def __aenter__(self) -> TelegramManager:
        """Enter the async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the async context manager and shutdown the client."""
        await self.shutdown()

    @property
    def handle(self) -> MediaClient:
        """Download capability to pass to media objects."""
        if not self._initialized or self._handle is None:
            raise TelegramManagerError("Telegram client is not started. Call setup() first.")
        return self._handle

    async def _get_raw_message(self, chat_id: int | str, message_id: int) -> raw.types.Message | None:
        assert self._client is not None
        peer = await self._client.resolve_peer(chat_id)
        ids = [raw.types.InputMessageID(id=message_id)]

        if isinstance(peer, raw.types.InputPeerChannel):
            channel = raw.types.InputChannel(channel_id=peer.channel_id, access_hash=peer.access_hash)
            result = await self._client.invoke(raw.functions.channels.GetMessages(channel=channel, id=ids))
        else:
            result = await self._client.invoke(raw.functions.messages.GetMessages(id=ids))

        for message in result.messages:
            if isinstance(message, raw.types.Message) and message.id == message_id:
                return message
        return None

    async def get_media(self, chat_id: int | str, message_id: int) -> Media | None:
        """Fetches a message and classifies its attached media. None if there is nothing to download."""
        handle = self.handle
        log(f"🔍 [Telegram] Получаю сообщение {message_id} из {chat_id}...", indent=1)

        message = await self._get_raw_message(chat_id, message_id)
        if message is None:
            log(f"⚠️ Сообщение {message_id} не найдено.", indent=2)
            return None
        if message.media is None:
            log(f"⚠️ В сообщении {message_id} нет медиа.", indent=2)
            return None
        return from_raw(message.media, handle)
