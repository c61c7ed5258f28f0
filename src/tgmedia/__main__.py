import argparse
import asyncio
import sys
from pathlib import Path

from .config.settings import Settings
from .managers.telegram_manager import TelegramManager
from .services.downloader import create_progress_callback, download_media
from .utils.log import log, set_debug


def _parse_chat(chat: str) -> int | str:
    return int(chat) if chat.lstrip("-").isdigit() else chat


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download media attached to a Telegram message.")
    parser.add_argument("chat", help="@username or numeric chat id.")
    parser.add_argument("message_id", type=int, help="Message id inside the chat.")
    parser.add_argument("--out", type=Path, default=None, help="Output directory (config download.output_path).")
    size_group = parser.add_mutually_exclusive_group()
    size_group.add_argument("--thumb", default=None, help="Download a photo thumbnail by its type letter.")
    size_group.add_argument("--largest", action="store_true", help="Download the largest photo thumbnail.")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode.")
    return parser


async def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    set_debug(args.debug)

    try:
        settings = Settings.load()
        output_path: Path = args.out or settings.download.output_path

        async with TelegramManager() as manager:
            await manager.setup(settings)
            manager.handle.progress = create_progress_callback(indent=2)

            media = await manager.get_media(_parse_chat(args.chat), args.message_id)
            if media is None:
                log("⚠️ В сообщении нет медиа, которое можно загрузить.")
                return

            result = await download_media(media, output_path, thumb=args.thumb, use_largest=args.largest)
            if result is not None:
                log(f"✅ Готово: {result}")

    except Exception as e:
        log(f"❌ Критическая ошибка: {e}")
        sys.exit(1)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
