# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import configparser
import logging
import os
from pathlib import Path
from typing import Final

from .._identity import Credentials
from ..exceptions import CredentialsResolutionError
from ..interfaces.identity import AWSCredentialsIdentity, CredentialsResolver

logger: Final = logging.getLogger(__name__)

DEFAULT_PROFILE: str = "default"


def shared_credentials_path() -> Path:
    """Location of the shared credentials file.

    ``AWS_SHARED_CREDENTIALS_FILE`` overrides the default ``~/.aws/credentials``.
    """
    if override := os.environ.get("AWS_SHARED_CREDENTIALS_FILE"):
        return Path(override).expanduser()
    return Path.home() / ".aws" / "credentials"


def active_profile(profile: str | None = None) -> str:
    return profile or os.environ.get("AWS_PROFILE") or DEFAULT_PROFILE


class ProfileCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from a profile in the shared credentials file.

    Sections in the credentials file are named after the profile itself, unlike the
    config file which prefixes them with ``profile``.
    """

    def __init__(self, *, profile: str | None = None, path: str | Path | None = None):
        """
        :param profile: Profile to read. Falls back to ``AWS_PROFILE``, then
            ``default``.
        :param path: Credentials file to read. Falls back to
            :py:func:`shared_credentials_path`.
        """
        self._profile = profile
        self._path = Path(path) if path is not None else None
        self._credentials: AWSCredentialsIdentity | None = None

    def get_credentials(self) -> AWSCredentialsIdentity:
        if self._credentials is not None:
            return self._credentials

        profile = active_profile(self._profile)
        path = self._path or shared_credentials_path()
        if not path.exists():
            raise CredentialsResolutionError(
                f"Shared credentials file {path} does not exist."
            )

        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(path)
        except configparser.Error as e:
            raise CredentialsResolutionError(
                f"Unable to parse shared credentials file {path}."
            ) from e

        if profile not in parser:
            raise CredentialsResolutionError(
                f"Profile {profile!r} was not found in {path}."
            )

        section = parser[profile]
        access_key_id = section.get("aws_access_key_id")
        secret_access_key = section.get("aws_secret_access_key")
        if not access_key_id or not secret_access_key:
            raise CredentialsResolutionError(
                f"Profile {profile!r} in {path} must set aws_access_key_id and "
                "aws_secret_access_key."
            )

        logger.debug("Loaded credentials for profile %s from %s", profile, path)
        self._credentials = Credentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=section.get("aws_session_token") or None,
        )
        return self._credentials
