# Configuration management

from pydantic_settings import BaseSettings  # type: ignore
from functools import lru_cache


class Settings(BaseSettings):
    # Storage
    storage_path: str = "./storage"
    strict_paths: bool = False  # reject keys that resolve outside storage_path
    copy_chunk_size: int = 64 * 1024
    dir_mode: int = 0o777

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Observability
    metrics_enabled: bool = True

    class Config:
        env_prefix = "OBJECTFS_"
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
