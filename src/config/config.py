"""
Configuration management for the APS model viewer backend.
Supports different environments (development, staging, production).
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Environment(Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ManifestStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "inprogress"
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    static_dir: str = str(PROJECT_ROOT / "wwwroot")


@dataclass
class LoggingConfig:
    log_level: str = "INFO"
    log_to_file: bool = True
    log_to_console: bool = True
    log_dir: str = "logs"


@dataclass
class APSConfig:
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    bucket: Optional[str] = None
    bucket_policy: str = "persistent"
    base_url: str = "https://developer.api.autodesk.com"
    http_timeout: float = 60.0
    internal_scopes: List[str] = None
    viewer_scopes: List[str] = None

    def __post_init__(self):
        if self.internal_scopes is None:
            self.internal_scopes = [
                "bucket:read", "bucket:create", "data:read", "data:write", "data:create"
            ]
        if self.viewer_scopes is None:
            self.viewer_scopes = ["viewables:read"]
        if not self.bucket and self.client_id:
            self.bucket = f"{self.client_id.lower()}-basic-app"

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class UploadConfig:
    max_file_size_bytes: int = 100 * 1024 * 1024
    chunk_size: int = 1024 * 1024
    allowed_extensions: List[str] = None

    def __post_init__(self):
        if self.allowed_extensions is None:
            self.allowed_extensions = [
                ".rvt", ".dwg", ".ifc", ".nwd", ".3ds", ".fbx", ".obj", ".step", ".iges", ".zip"
            ]


@dataclass
class TranslationConfig:
    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 30
    output_formats: List[Dict] = field(default_factory=lambda: [
        {"type": "svf2", "views": ["2d", "3d"]}
    ])


@dataclass
class Config:
    environment: Environment
    server: ServerConfig
    logging: LoggingConfig
    aps: APSConfig
    upload: UploadConfig
    translation: TranslationConfig

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() != "false"


def load_config() -> Config:
    """Load configuration based on environment variables."""
    env = Environment(os.getenv("ENVIRONMENT", "development"))

    server_config = ServerConfig(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        static_dir=os.getenv("STATIC_DIR", str(PROJECT_ROOT / "wwwroot"))
    )

    logging_config = LoggingConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_to_file=_env_flag("LOG_TO_FILE"),
        log_to_console=_env_flag("LOG_TO_CONSOLE"),
        log_dir=os.getenv("LOG_DIR", "logs")
    )

    aps_config = APSConfig(
        client_id=os.getenv("APS_CLIENT_ID"),
        client_secret=os.getenv("APS_CLIENT_SECRET"),
        bucket=os.getenv("APS_BUCKET"),
        bucket_policy=os.getenv("APS_BUCKET_POLICY", "persistent"),
        base_url=os.getenv("APS_BASE_URL", "https://developer.api.autodesk.com").rstrip("/"),
        http_timeout=float(os.getenv("APS_HTTP_TIMEOUT", "60"))
    )

    upload_config = UploadConfig(
        max_file_size_bytes=int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024
    )

    translation_config = TranslationConfig(
        poll_interval_seconds=float(os.getenv("TRANSLATION_POLL_INTERVAL", "2")),
        max_poll_attempts=int(os.getenv("TRANSLATION_MAX_ATTEMPTS", "30"))
    )

    return Config(
        environment=env,
        server=server_config,
        logging=logging_config,
        aps=aps_config,
        upload=upload_config,
        translation=translation_config
    )


# Global configuration instance
config = load_config()
