from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Updater
    diagnostic_period: float = 1.0  # seconds between periodic update cycles
    hardware_id: str = ""  # stamped on every published batch
    node_name: str = ""  # when set, report names become "<node_name>: <task>"
    verbose: bool = False  # log every non-OK status on publish

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Webhook publishing (empty URL disables it)
    publish_webhook_url: str = ""
    publish_timeout: float = 10.0

    # Built-in host tasks
    host_tasks_enabled: bool = True
    disk_path: str = "/"
    disk_warn_percent: float = 90.0
    disk_error_percent: float = 97.0

    # Logging
    log_level: str = "INFO"


settings = Settings()
