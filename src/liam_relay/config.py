"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Completion
    openai_api_key: str = Field(default="", description="OpenAI API key")
    llm_model_name: str = Field(default="gpt-4", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud.",
    )
    llm_temperature: float = 0.7

    # Embedding
    embedding_provider: str = Field(
        default="openai",
        description="Either 'openai' or 'huggingface' (local sentence-transformers).",
    )
    embedding_model: str = "text-embedding-ada-002"

    # Google (OAuth2 refresh-token flow)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""
    google_redirect_uri: str = "https://developers.google.com/oauthplayground"
    google_sheet_id: str = ""
    google_sheet_range: str = "Sheet1!A:B"
    google_drive_folder_id: str = ""

    # Mail
    gmail_user: str = ""
    gmail_app_pass: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    mail_subject: str = "Liam’s GPT Email Delivery"

    # Storage
    data_dir: Path = Path("data")

    # Ingestion / recall
    chunk_size: int = 1000
    chunk_overlap: int = 100
    recall_top_k: int = 5
    max_archive_files: int = 2000
    max_archive_bytes: int = 200 * 1024 * 1024

    # Auth
    api_token: str = Field(default="", description="Bearer token for relay routes; empty disables the check")
    admin_token: str = ""
    admin_username: str = "admin"
    admin_password: str = ""
    auth_secret: str = "dev-secret-change-me"
    admin_token_ttl_minutes: int = 60

    # Serving
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    dashboard_dir: Path = Path("dashboard")
    activity_log_size: int = 200

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # -- derived paths --------------------------------------------------------

    @property
    def memory_dir(self) -> Path:
        """Folder that receives one timestamped sub-folder per extracted archive."""
        return self.data_dir / "memory"

    @property
    def archive_log_path(self) -> Path:
        return self.data_dir / "memory-log.json"

    @property
    def vector_store_path(self) -> Path:
        return self.data_dir / "memory-index.json"

    @property
    def sync_log_path(self) -> Path:
        return self.data_dir / "sync-log.json"


# Singleton — import `settings` wherever needed.
settings = Settings()
