# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Sequence
from typing import Final

from ..exceptions import CredentialsResolutionError
from ..interfaces.identity import AWSCredentialsIdentity, CredentialsResolver
from .environment import EnvironmentCredentialsResolver
from .profile import ProfileCredentialsResolver

logger: Final = logging.getLogger(__name__)


class ChainedCredentialsResolver(CredentialsResolver):
    """Attempts to resolve credentials by checking a sequence of sub-resolvers.

    If a nested resolver raises a :py:class:`CredentialsResolutionError`, the next
    resolver in the chain will be attempted. Credentials are cached until they
    expire.
    """

    def __init__(self, *, resolvers: Sequence[CredentialsResolver]) -> None:
        """Construct a ChainedCredentialsResolver.

        :param resolvers: The sequence of resolvers to resolve credentials from.
        """
        self._resolvers = resolvers
        self._cached: AWSCredentialsIdentity | None = None

    def get_credentials(self) -> AWSCredentialsIdentity:
        if self._cached is None or self._cached.is_expired:
            self._cached = self._get_credentials()
        return self._cached

    def _get_credentials(self) -> AWSCredentialsIdentity:
        logger.debug("Attempting to resolve credentials from resolver chain.")
        for resolver in self._resolvers:
            try:
                logger.debug(
                    "Attempting to resolve credentials from %s.", type(resolver)
                )
                return resolver.get_credentials()
            except CredentialsResolutionError as e:
                logger.debug(
                    "Failed to resolve credentials from %s: %s", type(resolver), e
                )

        raise CredentialsResolutionError(
            "Failed to resolve credentials from resolver chain."
        )


def create_default_chain(*, profile: str | None = None) -> ChainedCredentialsResolver:
    """Build the standard chain: environment variables, then the shared credentials
    file."""
    return ChainedCredentialsResolver(
        resolvers=(
            EnvironmentCredentialsResolver(),
            ProfileCredentialsResolver(profile=profile),
        )
    )
