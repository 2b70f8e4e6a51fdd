# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import configparser
import datetime
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, ClassVar, Final, Literal

from .credentials_resolvers import ChainedCredentialsResolver, create_default_chain
from .credentials_resolvers.profile import DEFAULT_PROFILE
from .signers import DEFAULT_SERVICE, SigningContext

logger: Final = logging.getLogger(__name__)

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_CONFIG_FILE = "config_file"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "config_file",
    "default",
    "in_code_update",
]

type EnvironmentLoader = Callable[[], Mapping[str, str]]
type ConfigFileLoader = Callable[[str], Mapping[str, str]]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(value={self.value!r}, source={self.source!r})"


def shared_config_path() -> Path:
    """Location of the shared config file.

    ``AWS_CONFIG_FILE`` overrides the default ``~/.aws/config``.
    """
    if override := os.environ.get("AWS_CONFIG_FILE"):
        return Path(override).expanduser()
    return Path.home() / ".aws" / "config"


class SigningConfig:
    """Signing configuration with precedence-based resolution.

    Each field is taken from the first source that provides it: constructor
    argument, environment variable, shared config file, then the default. The
    profile is resolved first since it selects the config file section.

    Unset constructor arguments use the ``...`` sentinel so that an explicit
    ``None`` still counts as provided.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "profile": {
            "env_vars": ("AWS_PROFILE",),
            "default": DEFAULT_PROFILE,
        },
        "region": {
            "env_vars": ("AWS_REGION", "AWS_DEFAULT_REGION"),
            "config_key": "region",
            "default": None,
        },
        "service": {
            "env_vars": ("KLA_SIGV4_SERVICE",),
            "default": DEFAULT_SERVICE,
        },
        "signed_headers": {
            "default": (),
        },
    }

    def __init__(
        self,
        *,
        profile: str | None = ...,  # type: ignore[assignment]
        region: str | None = ...,  # type: ignore[assignment]
        service: str | None = ...,  # type: ignore[assignment]
        signed_headers: Iterable[str] = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        if "signed_headers" in self._constructor_values:
            self._constructor_values["signed_headers"] = tuple(signed_headers)
        self._resolved = False

    def resolve(
        self,
        *,
        environment_loader: EnvironmentLoader | None = None,
        config_file_loader: ConfigFileLoader | None = None,
    ) -> None:
        """Resolve configuration from all sources.

        :param environment_loader: Returns the environment mapping. Defaults to
            ``os.environ``.
        :param config_file_loader: Returns the config file section for the given
            profile name. Defaults to reading the shared config file.
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are "
                "not allowed."
            )

        env_values = (environment_loader or self._load_environment_values)()
        self._profile = self._resolve_field("profile", env_values, {})
        profile = self._profile.value or DEFAULT_PROFILE
        config_file_values = (config_file_loader or self._load_config_file_values)(
            profile
        )

        for field_name in self.CONFIG_FIELDS:
            if field_name == "profile":
                continue
            resolved = self._resolve_field(field_name, env_values, config_file_values)
            setattr(self, f"_{field_name}", resolved)

        self._resolved = True
        logger.debug(
            "Resolved signing config: %s",
            {name: self.get_config_value_object(name) for name in self.CONFIG_FIELDS},
        )

    def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    def _load_config_file_values(self, profile: str) -> Mapping[str, str]:
        config_path = shared_config_path()
        if not config_path.exists():
            return {}

        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_path)

        section_name = f"profile {profile}" if profile != DEFAULT_PROFILE else profile
        if section_name not in parser:
            return {}

        return dict(parser[section_name])

    def _resolve_field(
        self,
        field_name: str,
        env_values: Mapping[str, str],
        config_file_values: Mapping[str, str],
    ) -> ConfigValue:
        field_config = self.CONFIG_FIELDS[field_name]
        config_key = field_config.get("config_key")

        if field_name in self._constructor_values:
            return ConfigValue(self._constructor_values[field_name], SOURCE_CONSTRUCTOR)
        for env_var in field_config.get("env_vars", ()):
            if env_values.get(env_var):
                return ConfigValue(env_values[env_var], SOURCE_ENVIRONMENT)
        if config_key and config_file_values.get(config_key):
            return ConfigValue(config_file_values[config_key], SOURCE_CONFIG_FILE)
        return ConfigValue(field_config["default"], SOURCE_DEFAULT)

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if not self._resolved:
            raise RuntimeError("Config must be resolved before accessing values")
        return getattr(self, f"_{field_name}")

    def signing_context(
        self, *, date: datetime.datetime | None = None, **options: Any
    ) -> SigningContext:
        """Build a SigningContext from the resolved values.

        :param date: Signing time, defaults to now.
        :param options: Any other :py:class:`SigningContext` field, for example
            ``payload_signing_enabled``.
        """
        if date is not None:
            options["date"] = date
        return SigningContext(
            region=self.region or "",
            service=self.service or "",
            signed_headers=self.signed_headers,
            **options,
        )

    def credentials_resolver(self) -> ChainedCredentialsResolver:
        """Build the default credentials chain for the resolved profile."""
        return create_default_chain(profile=self.profile)

    @property
    def profile(self) -> str | None:
        return self.get_config_value_object("profile").value

    @profile.setter
    def profile(self, value: str | None) -> None:
        self._profile = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def region(self) -> str | None:
        return self.get_config_value_object("region").value

    @region.setter
    def region(self, value: str | None) -> None:
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def service(self) -> str | None:
        return self.get_config_value_object("service").value

    @service.setter
    def service(self, value: str | None) -> None:
        self._service = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def signed_headers(self) -> tuple[str, ...]:
        return self.get_config_value_object("signed_headers").value

    @signed_headers.setter
    def signed_headers(self, value: Iterable[str]) -> None:
        self._signed_headers = ConfigValue(tuple(value), SOURCE_IN_CODE_UPDATE)
