"""
Application settings and configuration.
All options are loaded from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


OFF_HOURS_MESSAGE = (
    "⚠️ Fuera de Servicio. Nuestro horario de atención es de 8:00 AM a 7:00 PM. "
    "Por favor, escríbenos mañana a partir de las 8:00 AM."
)
LUNCH_MESSAGE = (
    "⚠️ Fuera de Servicio por almuerzo. Nuestro horario se reanuda a las 2:00 PM "
    "(12:00 PM - 2:00 PM)."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # WhatsApp Web bridge
    bridge_url: str = "http://localhost:3000"
    sessions_dir: str = "sessions-offhours"
    reconnect_attempts: int = 5

    # HTTP server
    port: int = 10000
    debug: bool = False

    # Whitelist database - use DATA_DIR for a persistent volume
    data_dir: str = "."

    @property
    def database_url(self) -> str:
        """Database URL with support for persistent volumes."""
        return f"sqlite+aiosqlite:///{self.data_dir}/offhours.db"

    # Civil timezone every window and day key is resolved in
    timezone: str = "America/New_York"

    # Service window [open, close) and lunch window [start, end), local hours
    open_hour: int = 8
    close_hour: int = 19
    lunch_start_hour: int = 12
    lunch_end_hour: int = 14
    lunch_chat_kinds: List[str] = ["group"]

    # Reactive replies
    user_delay_seconds: float = 10.0
    group_delay_seconds: float = 30.0
    response_lock_margin_seconds: float = 0.5
    user_cooldown_seconds: float = 10.0
    group_cooldown_seconds: float = 60.0
    dedupe_max_entries: int = 5000
    dedupe_keep_entries: int = 4000

    # Daily group broadcast
    prepare_hour: int = 18
    prepare_minute: int = 0
    broadcast_hour: int = 18
    broadcast_minute: int = 15
    broadcast_pause_min_seconds: float = 60.0
    broadcast_pause_max_seconds: float = 300.0

    # Notice texts
    off_hours_message: str = OFF_HOURS_MESSAGE
    lunch_message: str = LUNCH_MESSAGE

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
