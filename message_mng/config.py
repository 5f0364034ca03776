"""
Configuration management for the Message Management API.

Uses Pydantic settings for validation and environment variable support.
"""
from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseProvider(str, Enum):
    """Supported backing document stores."""
    MONGO = "mongo"
    FIRESTORE = "firestore"


# Accepted spellings for DB_PROVIDER
PROVIDER_ALIASES = {
    "mongo": DatabaseProvider.MONGO,
    "mongodb": DatabaseProvider.MONGO,
    "firestore": DatabaseProvider.FIRESTORE,
}


def parse_provider(value) -> DatabaseProvider:
    """
    Resolve a configured provider name.

    Raises:
        ValueError: If the name is not one of the accepted providers.
    """
    if isinstance(value, DatabaseProvider):
        return value
    key = str(value or "").strip().lower()
    if key not in PROVIDER_ALIASES:
        accepted = ", ".join(sorted(PROVIDER_ALIASES))
        raise ValueError(
            f"unsupported database provider: {value!r} (accepted: {accepted})"
        )
    return PROVIDER_ALIASES[key]


class DatabaseSettings(BaseSettings):
    """Document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix='DB_',
        env_file='.env',
        extra='ignore'
    )

    provider: DatabaseProvider = Field(default=DatabaseProvider.MONGO, description='mongo or firestore')
    uri: str = Field(
        default='mongodb://localhost:27017/sit-iot-message-mng',
        description='MongoDB connection string'
    )
    name: str = Field(default='sit-iot-message-mng', description='Database name')
    messages_collection: str = Field(default='messages')
    aggregations_collection: str = Field(default='aggregations')
    server_selection_timeout_ms: int = Field(default=30000, description='Mongo server selection timeout')

    @field_validator('provider', mode='before')
    @classmethod
    def validate_provider(cls, value):
        return parse_provider(value)


class FirebaseSettings(BaseSettings):
    """Firebase / Firestore configuration."""

    model_config = SettingsConfigDict(
        env_prefix='FIREBASE_',
        env_file='.env',
        extra='ignore'
    )

    credentials_path: Optional[str] = Field(default=None, description='Service account JSON path')
    project_id: Optional[str] = Field(default=None)


class AuthSettings(BaseSettings):
    """Identity provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix='AUTH_',
        env_file='.env',
        extra='ignore'
    )

    api_key: str = Field(default='', description='Identity Platform API key')
    audience: Optional[str] = Field(default=None, description='Expected token audience')
    lookup_url: str = Field(
        default='https://identitytoolkit.googleapis.com/v1/accounts:lookup'
    )
    timeout: float = Field(default=30.0, description='Timeout in seconds')


class ProjectServiceSettings(BaseSettings):
    """Project service (device ownership) configuration."""

    model_config = SettingsConfigDict(
        env_prefix='PROJECT_SERVICE_',
        env_file='.env',
        extra='ignore'
    )

    api_url: str = Field(default='http://localhost', description='Project service base URL')
    users_path: str = Field(default='/api/mqtt/users')
    timeout: float = Field(default=30.0, description='Timeout in seconds')
    user_agent: str = Field(default='sit-iot-message-service')


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Application
    app_name: str = Field(default='Message Management API')
    app_version: str = Field(default='1.0.0')
    debug: bool = Field(default=False)
    environment: str = Field(default='development')

    # Server
    host: str = Field(default='0.0.0.0')
    port: int = Field(default=8080)
    reload: bool = Field(default=False)

    # API
    api_prefix: str = Field(default='/api')
    cors_origins: List[str] = Field(
        default=[
            'http://localhost',
            'http://localhost:5173',
            'http://127.0.0.1:5173',
            'https://console.sit-iot.com',
        ]
    )

    # Logging
    log_level: str = Field(default='INFO')

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    project_service: ProjectServiceSettings = Field(default_factory=ProjectServiceSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == 'production'


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return AppSettings()
