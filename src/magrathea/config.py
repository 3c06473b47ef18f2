"""
Session settings for the Magrathea NTS API client.
"""

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError


DEFAULT_SERVER = "api.magrathea-telecom.co.uk"
DEFAULT_PORT = 777
ENV_PREFIX = "MAGRATHEA_"


class SessionConfig(BaseModel):
    """
    Connection settings for a provisioning session.

    Only server, port, username and password are recognised; anything else is
    rejected both at construction and on assignment. Changing a field after a
    session has connected does not affect that connection.
    """
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    server: str = DEFAULT_SERVER
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    username: str = ""
    password: SecretStr = SecretStr("")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid session settings: {e}") from e

    def __setattr__(self, name: str, value: Any) -> None:
        # Unknown names raise ValueError, bad values a ValidationError
        try:
            super().__setattr__(name, value)
        except (PydanticValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid session setting: {e}") from e

    @property
    def address(self) -> str:
        return f"{self.server}:{self.port}"

    @classmethod
    def from_mapping(cls, settings: Optional[Mapping[str, Any]] = None) -> "SessionConfig":
        """
        Build a config from a settings mapping.

        Args:
            settings: Any subset of server, port, username, password

        Returns:
            SessionConfig: Settings with defaults for missing keys

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        return cls(**dict(settings or {}))

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "SessionConfig":
        """Build a config from MAGRATHEA_SERVER, MAGRATHEA_PORT, etc."""
        settings = {}
        for name in cls.model_fields:
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                settings[name] = value
        return cls.from_mapping(settings)

    def update(self, **changes: Any) -> None:
        """
        Change settings in place.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        for name, value in changes.items():
            setattr(self, name, value)
