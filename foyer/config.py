"""
Application settings for Foyer.

Settings are a pydantic model so that values coming from the environment
are validated once at startup instead of on every request.
"""

import logging
import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "FOYER_"
DEFAULT_CONTROLLERS_PACKAGE = "app"


class Settings(BaseModel):
    """
    Startup configuration of a Foyer application.

    Attributes:
        controllers_packages: Package scopes scanned for controllers, in scan order.
                              Accepts a comma-separated string or a list.
        static_dir: Directory served as static resources when no route matches.
        views_dir: Directory containing the templates used by view forwards.
        log_level: Level name for the framework logger.
        json_logs: Emit JSON log lines instead of coloured text.
        environment: Environment name injected into log records.
        log_file: Also write framework logs to this file, rotated by size.
    """

    controllers_packages: List[str] = [DEFAULT_CONTROLLERS_PACKAGE]
    static_dir: Optional[str] = None
    views_dir: Optional[str] = None
    log_level: str = "INFO"
    json_logs: bool = False
    environment: str = "production"
    log_file: Optional[str] = None

    @field_validator("controllers_packages", mode="before")
    @classmethod
    def _split_packages(cls, value):
        if value is None:
            return [DEFAULT_CONTROLLERS_PACKAGE]
        if isinstance(value, str):
            value = value.split(",")
        packages = [package.strip() for package in value if package and package.strip()]
        if not packages:
            logger.info(
                "No controller package configured, using default package '%s'",
                DEFAULT_CONTROLLERS_PACKAGE,
            )
            return [DEFAULT_CONTROLLERS_PACKAGE]
        return packages

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from FOYER_* environment variables.

        Example:
            FOYER_CONTROLLERS_PACKAGES="shop.controllers, admin.controllers"
            FOYER_STATIC_DIR=./public
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            env_name = ENV_PREFIX + field_name.upper()
            if env_name in environ:
                values[field_name] = environ[env_name]

        if "controllers_packages" not in values:
            logger.info(
                "%sCONTROLLERS_PACKAGES not set, using default package '%s'",
                ENV_PREFIX,
                DEFAULT_CONTROLLERS_PACKAGE,
            )
        return cls(**values)
