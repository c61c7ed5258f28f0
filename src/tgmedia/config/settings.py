from __future__ import annotations

from pathlib import Path
from typing import Any, Final, cast

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CHUNK_ALIGNMENT: Final[int] = 4 * 1024
MAX_CHUNK_SIZE: Final[int] = 1024 * 1024


class AppConfig(BaseModel):
    session_name: str = Field(default="user_session", min_length=1)


class RetryConfig(BaseModel):
    count: int = Field(default=3, ge=1)
    delay_seconds: int = Field(default=2, ge=0)


class DownloadConfig(BaseModel):
    output_path: Path = Field(default=Path("downloads"))
    chunk_size: int = Field(default=MAX_CHUNK_SIZE)
    retries: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v <= 0 or v % CHUNK_ALIGNMENT != 0:
            raise ValueError(f"chunk_size должен быть положительным и кратным {CHUNK_ALIGNMENT}: {v}")
        if v > MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size не может превышать {MAX_CHUNK_SIZE}: {v}")
        # upload.GetFile rejects a limit that does not divide 1 MiB (LIMIT_INVALID).
        if MAX_CHUNK_SIZE % v != 0:
            raise ValueError(f"chunk_size должен делить {MAX_CHUNK_SIZE} без остатка: {v}")
        return v


class Settings(BaseSettings):
    telegram_api_id: int = Field(..., alias="TELEGRAM_API_ID")
    telegram_api_hash: str = Field(..., alias="TELEGRAM_API_HASH")

    app: AppConfig = Field(default_factory=AppConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    class YamlConfigSource(PydanticBaseSettingsSource):
        yaml_path: Path
        _data: dict[str, Any]
        _file_read: bool = False

        def __init__(self, settings_cls: type[BaseSettings], yaml_path: Path) -> None:
            super().__init__(settings_cls)
            self.yaml_path = yaml_path
            self._data = {}

        def _read_yaml(self) -> dict[str, Any]:
            """Reads YAML once, an absent or malformed file yields no values."""
            if self._file_read:
                return self._data

            self._file_read = True
            if self.yaml_path.exists():
                try:
                    with open(self.yaml_path, encoding="utf-8") as f:
                        loaded = yaml.safe_load(f)
                    self._data = loaded if isinstance(loaded, dict) else {}
                except (OSError, yaml.YAMLError) as e:
                    print(f"⚠️ Ошибка при чтении {self.yaml_path}: {e}")
            return self._data

        def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
            data = self._read_yaml()
            if field_name in data:
                return data[field_name], field_name, True
            return None, field_name, False

        def prepare_field_value(self, field_name: str, field: Any, value: Any, value_is_complex: bool) -> Any:
            return value

        def __call__(self) -> dict[str, Any]:
            return self._read_yaml()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls.YamlConfigSource(settings_cls, Path("config.yaml")),
            file_secret_settings,
        )

    @classmethod
    def load(cls) -> Settings:
        """Factory method for correct instantiation without arguments."""
        factory: type[Any] = cast(type[Any], cls)
        instance = factory()
        return cast(Settings, instance)


if __name__ == "__main__":
    settings = Settings.load()
    print(settings.model_dump())
