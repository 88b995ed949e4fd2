from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def get_project_root() -> Path:
    current_path = Path(__file__).parent
    while current_path != current_path.parent:
        if (current_path / "pyproject.toml").exists():
            return current_path
        current_path = current_path.parent
    return Path(".")


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = Field(default="Image Resize Service")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8001)

    # CORS Settings
    ALLOWED_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )

    # DB Settings
    DATABASE_URL: str = Field(default="sqlite:///./storage/databases/resize_service.db")

    # Storage Settings
    ARCHIVES_DIR: str = Field(default="./storage/archives")
    ARCHIVE_FILENAME: str = Field(default="resized-images.zip")

    # Upload Limits
    MAX_FILE_SIZE: int = Field(default=50 * 1024 * 1024)  # 50MB
    MAX_BATCH_SIZE: int = Field(default=100)

    # Default Processing Settings
    DEFAULT_MAX_WIDTH: int = Field(default=1920)
    DEFAULT_QUALITY: int = Field(default=80)
    DEFAULT_FORMAT: str = Field(default="JPEG")
    CONCURRENT_PROCESSING_LIMIT: int = Field(default=4)

    # Logging Settings
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="./logs/resize_service.log")

    model_config = {
        "env_file": get_project_root() / ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def absolute_database_url(self) -> str:
        """Get absolute database URL based on project root."""
        if self.DATABASE_URL.startswith("sqlite:///./"):
            relative_path = self.DATABASE_URL.replace("sqlite:///./", "")
            absolute_path = get_project_root() / relative_path
            return f"sqlite:///{absolute_path}"
        return self.DATABASE_URL

    @property
    def absolute_archives_dir(self) -> str:
        """Get absolute path for the archives directory."""
        return str(get_project_root() / self.ARCHIVES_DIR)

    @property
    def absolute_log_file(self) -> str:
        return str(get_project_root() / self.LOG_FILE)

    def ensure_directories(self) -> None:
        directories = [
            Path(self.absolute_archives_dir),
            Path(self.absolute_log_file).parent,
        ]
        if self.absolute_database_url.startswith("sqlite:///"):
            directories.append(
                Path(self.absolute_database_url.replace("sqlite:///", "")).parent
            )

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
