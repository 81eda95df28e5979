from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Masterplan Allocation & Feasibility Engine"
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Scenario defaults
    default_gsa_ha: float = 100
    default_tdi: int = 1
    default_preset_id: str = "S3"
    default_row_set_id: str = "A"

    # Display
    currency_code: str = "IDR"

    # In-memory scenario store capacity (oldest evicted first)
    max_scenarios: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
