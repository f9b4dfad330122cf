from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "video_sharing"

    # Credentials (tokens are issued by the identity service)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    cors_origins: str = "*"
    log_level: str = "INFO"
    port: int = 8000

    # Media store: "local" keeps files under upload_dir, "s3" uses a bucket
    media_backend: str = "local"
    upload_dir: str = "uploads"
    media_base_url: str = "/static"

    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    s3_bucket: str = ""
    s3_public_url: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        return [x.strip() for x in self.cors_origins.split(",") if x.strip()]


def get_settings() -> Settings:
    return Settings()
