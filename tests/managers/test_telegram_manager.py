# type: ignore[reportPrivateUsage]
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pyrogram import raw

from src.tgmedia.config.settings import AppConfig, DownloadConfig, Settings
from src.tgmedia.exceptions import TelegramManagerError
from src.tgmedia.managers.telegram_manager import TelegramManager
from src.tgmedia.models import Document, Photo
from src.tgmedia.services.media_client import MediaClient


@pytest.fixture
def settings() -> Settings:
    """Provides a mock Settings object for tests."""
    mock_settings = MagicMock(spec=Settings)
    mock_settings.app = AppConfig(session_name="test_session")
    mock_settings.download = DownloadConfig()
    mock_settings.telegram_api_id = 12345
    mock_settings.telegram_api_hash = "mock_hash"
    return mock_settings


@pytest.fixture
async def telegram_manager() -> AsyncGenerator[TelegramManager, None]:
    """Provides a TelegramManager instance for tests."""
    manager = TelegramManager()
    yield manager
    if manager._initialized:
        await manager.shutdown()


def mock_message(message_id: int, media) -> MagicMock:
    message = MagicMock(spec=raw.types.Message)
    message.id = message_id
    message.media = media
    return message


@pytest.mark.asyncio
@patch("src.tgmedia.managers.telegram_manager.Client")
async def test_setup_starts_client(mock_client_class: MagicMock, telegram_manager: TelegramManager, settings: Settings):
    mock_client = mock_client_class.return_value
    mock_client.start = AsyncMock()
    mock_client.is_connected = False

    await telegram_manager.setup(settings)

    mock_client_class.assert_called_once_with("test_session", api_id=12345, api_hash="mock_hash")
    mock_client.start.assert_awaited_once()
    assert telegram_manager._initialized
    assert isinstance(telegram_manager.handle, MediaClient)


@pytest.mark.asyncio
@patch("src.tgmedia.managers.telegram_manager.Client")
async def test_setup_failure(mock_client_class: MagicMock, telegram_manager: TelegramManager, settings: Settings):
    mock_client_class.return_value.start = AsyncMock(side_effect=ConnectionError("offline"))

    with pytest.raises(ConnectionError):
        await telegram_manager.setup(settings)

    assert not telegram_manager._initialized
    with pytest.raises(TelegramManagerError):
        _ = telegram_manager.handle


def test_handle_before_setup():
    with pytest.raises(TelegramManagerError):
        _ = TelegramManager().handle


@pytest.mark.asyncio
@patch("src.tgmedia.managers.telegram_manager.Client")
async def test_shutdown_stops_client(
    mock_client_class: MagicMock, telegram_manager: TelegramManager, settings: Settings
):
    mock_client = mock_client_class.return_value
    mock_client.start = AsyncMock()
    mock_client.stop = AsyncMock()
    mock_client.is_connected = True
    await telegram_manager.setup(settings)

    await telegram_manager.shutdown()

    mock_client.stop.assert_awaited_once()
    assert not telegram_manager._initialized


@pytest.mark.asyncio
async def test_update_config_restarts_on_credentials_change(telegram_manager: TelegramManager, settings: Settings):
    telegram_manager._initialized = True
    telegram_manager._api_id = 1

    with (
        patch.object(telegram_manager, "shutdown", new_callable=AsyncMock) as mock_shutdown,
        patch.object(telegram_manager, "setup", new_callable=AsyncMock) as mock_setup,
    ):
        await telegram_manager.update_config(settings)

    mock_shutdown.assert_awaited_once()
    mock_setup.assert_awaited_once_with(settings)


@pytest.mark.asyncio
async def test_update_config_keeps_session_when_only_download_changes(
    telegram_manager: TelegramManager, settings: Settings
):
    telegram_manager._initialized = True
    telegram_manager._client = MagicMock(is_connected=False)
    telegram_manager._session_name = "test_session"
    telegram_manager._api_id = 12345
    telegram_manager._api_hash = "mock_hash"
    settings.download = DownloadConfig(chunk_size=8192)

    with patch.object(telegram_manager, "setup", new_callable=AsyncMock) as mock_setup:
        await telegram_manager.update_config(settings)

    mock_setup.assert_not_awaited()
    assert telegram_manager.handle.chunk_size == 8192


@pytest.mark.asyncio
async def test_update_config_sets_up_when_not_initialized(telegram_manager: TelegramManager, settings: Settings):
    with patch.object(telegram_manager, "setup", new_callable=AsyncMock) as mock_setup:
        await telegram_manager.update_config(settings)

    mock_setup.assert_awaited_once_with(settings)


def _started_manager(client: MagicMock) -> TelegramManager:
    manager = TelegramManager()
    manager._client = client
    manager._handle = MediaClient(client)
    manager._initialized = True
    return manager


@pytest.mark.asyncio
async def test_get_media_from_private_chat():
    client = MagicMock()
    client.resolve_peer = AsyncMock(return_value=raw.types.InputPeerUser(user_id=1, access_hash=2))
    photo_media = raw.types.MessageMediaPhoto(photo=raw.types.PhotoEmpty(id=9))
    client.invoke = AsyncMock(return_value=MagicMock(messages=[mock_message(42, photo_media)]))
    manager = _started_manager(client)

    media = await manager.get_media(12345, 42)

    assert isinstance(media, Photo)
    assert media.media is photo_media
    query = client.invoke.await_args.args[0]
    assert isinstance(query, raw.functions.messages.GetMessages)
    assert query.id[0].id == 42


@pytest.mark.asyncio
async def test_get_media_from_channel():
    client = MagicMock()
    client.resolve_peer = AsyncMock(return_value=raw.types.InputPeerChannel(channel_id=100, access_hash=200))
    document_media = raw.types.MessageMediaDocument()
    client.invoke = AsyncMock(return_value=MagicMock(messages=[mock_message(7, document_media)]))
    manager = _started_manager(client)

    media = await manager.get_media("@channel", 7)

    assert isinstance(media, Document)
    query = client.invoke.await_args.args[0]
    assert isinstance(query, raw.functions.channels.GetMessages)
    assert query.channel.channel_id == 100
    assert query.channel.access_hash == 200


@pytest.mark.asyncio
async def test_get_media_message_without_media():
    client = MagicMock()
    client.resolve_peer = AsyncMock(return_value=raw.types.InputPeerSelf())
    client.invoke = AsyncMock(return_value=MagicMock(messages=[mock_message(3, None)]))
    manager = _started_manager(client)

    assert await manager.get_media("me", 3) is None


@pytest.mark.asyncio
async def test_get_media_unsupported_kind():
    client = MagicMock()
    client.resolve_peer = AsyncMock(return_value=raw.types.InputPeerSelf())
    poll_like = raw.types.MessageMediaDice(value=3, emoticon="🎯")
    client.invoke = AsyncMock(return_value=MagicMock(messages=[mock_message(3, poll_like)]))
    manager = _started_manager(client)

    assert await manager.get_media("me", 3) is None


@pytest.mark.asyncio
async def test_get_media_message_not_found():
    client = MagicMock()
    client.resolve_peer = AsyncMock(return_value=raw.types.InputPeerSelf())
    client.invoke = AsyncMock(return_value=MagicMock(messages=[raw.types.MessageEmpty(id=3)]))
    manager = _started_manager(client)

    assert await manager.get_media("me", 3) is None
