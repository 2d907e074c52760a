import logging
import os
from datetime import timedelta
from enum import StrEnum
from functools import lru_cache
from importlib.metadata import metadata
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

PACKAGE_METADATA = metadata("authsession")


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


class RotationPolicy(StrEnum):
    """When a validated session token is replaced by a fresh one."""

    # Every successful validation issues a new token
    ALWAYS = "always"
    # Rotate only once the grace epoch stored with the token has passed
    GRACE_ELAPSED = "grace_elapsed"


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PACKAGE_METADATA["Name"]
    app_title: str = os.getenv("APP_TITLE", convert_app_name(app_name))
    app_version: str = PACKAGE_METADATA["Version"]
    app_description: str = PACKAGE_METADATA["Summary"]

    # Current working environment
    current_environment: Environment = Environment.LOCAL
    log_level: int = logging.INFO

    # Secret used as CSRF HMAC key and as key material for the token cipher
    app_key: str

    # Variables for Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_user: str | None = None
    redis_pass: str | None = None
    redis_base: int | None = None
    redis_max_pool_connections: int = 10  # Maximum number of connections in the Redis pool
    redis_socket_connect_timeout: int = 5  # Socket connect timeout in seconds
    redis_socket_timeout: int = 5  # Socket timeout in seconds

    # Session token settings
    auth_token_lifetime: int = int(timedelta(days=30).total_seconds())
    auth_grace_window: int = int(timedelta(hours=1).total_seconds())
    auth_token_length: int = 64
    auth_rotation_policy: RotationPolicy = RotationPolicy.GRACE_ELAPSED

    # Session cookie attributes
    auth_cookie_name: str = "session"
    auth_cookie_path: str = "/"
    auth_cookie_domain: str | None = None
    auth_cookie_secure: bool = False
    auth_cookie_http_only: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # CSRF value transport
    csrf_field_name: str = "_token"
    csrf_header_name: str = "X-CSRF-Token"

    # Rate limiting settings (attempts per fixed window)
    rate_limit_enabled: bool = True
    rate_limit_login_max: int = 5
    rate_limit_login_window: int = 600  # 10 minutes
    rate_limit_sensitive_max: int = 10
    rate_limit_sensitive_window: int = 60

    @computed_field
    @property
    def redis_url(self) -> URL:
        """
        Assemble REDIS URL from settings.
        """
        path = ""

        if self.redis_base is not None:
            path = f"/{self.redis_base}"

        return URL.build(
            scheme="redis",
            host=self.redis_host,
            port=self.redis_port,
            user=self.redis_user,
            password=self.redis_pass,
            path=path,
        )

    @computed_field
    @property
    def uses_redis(self) -> bool:
        """
        Whether the key-value store is Redis (every environment except local).
        """
        return self.current_environment != Environment.LOCAL


@lru_cache
def get_settings() -> Settings:
    """Settings read from the environment, built on first use."""
    return Settings()  # type: ignore
