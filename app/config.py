"""
全局配置模块：通过 pydantic-settings 读取 .env 环境变量
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用全局配置，从 .env 文件加载"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── MongoDB ──
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "todo_app"
    MONGODB_COLLECTION: str = "todos"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000  # 服务器选择超时（毫秒）

    # ── 应用 ──
    ENV: str = "development"  # development | production
    APP_NAME: str = "todo-api"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = Field(default=5000, validation_alias=AliasChoices("APP_PORT", "PORT"))
    LOG_LEVEL: str = "INFO"

    # ── CORS ──
    CORS_ORIGINS: list[str] = ["*"]

    @property
    def mongodb_uri_configured(self) -> bool:
        """连接串是否由环境变量 / .env 显式提供"""
        return "MONGODB_URI" in self.model_fields_set


@lru_cache
def get_settings() -> Settings:
    """单例获取配置（带缓存）"""
    return Settings()
