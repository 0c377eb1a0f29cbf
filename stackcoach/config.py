from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Readiness gates
    min_journal_days: int = 7
    min_check_ins: int = 14

    # Stack size above which a warning is raised
    max_stack_size: int = 15

    # Recommendations returned by get_top() when no limit is given
    default_top_n: int = 5

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
