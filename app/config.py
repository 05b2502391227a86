# app/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseSettings):
    # Application Settings
    session_ttl_hours: int = 4
    action_message_seconds: float = 3.0
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost:4200"]
    log_level: str = "INFO"

    # Gemini
    google_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: Optional[float] = None

    # Saved list storage: "memory" or "firestore"
    storage_backend: str = "memory"
    storage_collection: str = "packing_storage"
    storage_quota_bytes: int = 5 * 1024 * 1024

    # Google Cloud Configuration
    project_id: str = ""
    port: int = 8080
    database: str = "(default)"

    # Pydantic V2 configuration (Python 3.13 compatible)
    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # Allow extra environment variables without validation errors
    )

class CloudRunConfig:
    """Configuration for Cloud Run deployment"""

    # Environment Detection
    IS_CLOUD_RUN: bool = os.getenv("K_SERVICE") is not None

    # Google Cloud Configuration
    PROJECT_ID: str = os.getenv("GOOGLE_CLOUD_PROJECT", "")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Secret Manager Paths (for Cloud Run)
    @classmethod
    def get_google_api_key_secret_path(cls) -> str:
        return f"projects/{cls.PROJECT_ID}/secrets/google-api-key/versions/latest"

settings = Settings()
cloud_config = CloudRunConfig()
