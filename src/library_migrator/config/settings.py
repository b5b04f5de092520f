"""
Configuration management for library-migrator.

This module provides environment-based configuration using Pydantic BaseSettings.
All three stores the migration touches (source document store, target
relational store and the run-metadata store) are configured here, together
with the chunking parameters of the migration steps.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("LMG_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

SQLALCHEMY_POSTGRES_SCHEME = "postgresql+psycopg://"


def normalize_database_url(url: str) -> str:
    """
    Normalize a PostgreSQL URL to the psycopg (v3) SQLAlchemy driver.

    ``postgres://`` is rejected by SQLAlchemy and plain ``postgresql://`` would
    pick psycopg2, which is not a dependency of this project. URLs for other
    databases (e.g. SQLite) are returned unchanged.

    Examples:
        >>> normalize_database_url("postgres://u:p@db:5432/library")
        'postgresql+psycopg://u:p@db:5432/library'
        >>> normalize_database_url("sqlite:///target.db")
        'sqlite:///target.db'
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return SQLALCHEMY_POSTGRES_SCHEME + url[len(prefix):]
    return url


class DatabaseSettings:
    """
    Connection parameters for the target relational store.

    Supports both component-based and URI-based connection string generation.
    """

    def __init__(
        self,
        host: str,
        port: int = 5432,
        user: str = "",
        password: str = "",
        db: str = "",
        uri: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.db = db
        self.uri = uri

    def get_connection_string(self) -> str:
        """
        Get the SQLAlchemy connection string.

        Returns:
            Database connection string (DSN)
        """
        if self.uri:
            return normalize_database_url(self.uri)
        return (
            f"{SQLALCHEMY_POSTGRES_SCHEME}{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db}"
        )


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are loaded with the LMG_ prefix. For example,
    LMG_CHUNK_SIZE overrides the chunk_size setting and
    LMG_TARGET_DATABASE__URI (or LMG_TARGET_DATABASE_URI) sets the target URI.
    """

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        validation_alias=AliasChoices("LMG_ENVIRONMENT", "ENVIRONMENT"),
        description="Deployment environment",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LMG_LOG_LEVEL", "LOG_LEVEL"),
        description="Logging level (uppercase)",
    )

    # Source document store
    source_mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI of the source store",
    )
    source_mongo_database: str = Field(
        default="library", description="MongoDB database holding the collections"
    )

    # Target relational store
    target_database_host: str = Field(default="localhost", description="Target host")
    target_database_port: int = Field(default=5432, description="Target port")
    target_database_user: str = Field(default="postgres", description="Target user")
    target_database_password: str = Field(
        default="postgres", description="Target password"
    )
    target_database_db: str = Field(default="library", description="Target database")
    target_database_uri: Optional[str] = Field(
        default=None,
        description="Complete target database URI (overrides the components)",
        validation_alias=AliasChoices(
            "LMG_TARGET_DATABASE__URI", "LMG_TARGET_DATABASE_URI"
        ),
    )

    # Run metadata store (job / step execution tables)
    job_repository_uri: str = Field(
        default="sqlite:///migration_jobs.db",
        description="SQLAlchemy URI of the run metadata store",
    )

    # Migration tuning
    job_name: str = Field(default="migrate_job", description="Name recorded per run")
    chunk_size: int = Field(
        default=5, gt=0, description="Entities committed per target transaction"
    )
    page_size: int = Field(
        default=10, gt=0, description="Documents fetched per source page"
    )

    @property
    def target_database(self) -> DatabaseSettings:
        """Target database settings assembled from the individual fields."""
        return DatabaseSettings(
            host=self.target_database_host,
            port=self.target_database_port,
            user=self.target_database_user,
            password=self.target_database_password,
            db=self.target_database_db,
            uri=self.target_database_uri,
        )

    def get_target_connection_string(self) -> str:
        """Get the SQLAlchemy URL of the target store."""
        return self.target_database.get_connection_string()

    def get_job_repository_connection_string(self) -> str:
        """Get the SQLAlchemy URL of the run metadata store."""
        return normalize_database_url(self.job_repository_uri)

    @model_validator(mode="after")
    def validate_production_target(self) -> "Settings":
        """Production runs must migrate into PostgreSQL.

        Raises:
            ValueError: If ENVIRONMENT is 'prod' and the target is not PostgreSQL
        """
        target_url = self.get_target_connection_string()
        if self.ENVIRONMENT == "prod" and not target_url.startswith(
            SQLALCHEMY_POSTGRES_SCHEME
        ):
            raise ValueError(
                "Production environment requires a PostgreSQL target. "
                f"Got: {target_url[:20]}..."
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="LMG_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
