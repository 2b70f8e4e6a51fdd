# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import os

from .._identity import Credentials
from ..exceptions import CredentialsResolutionError
from ..interfaces.identity import AWSCredentialsIdentity, CredentialsResolver


class EnvironmentCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from system environment variables.

    The environment is read once; later calls return the same credentials.
    """

    def __init__(self):
        self._credentials: AWSCredentialsIdentity | None = None

    def get_credentials(self) -> AWSCredentialsIdentity:
        if self._credentials is not None:
            return self._credentials

        access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
        secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
        session_token = os.getenv("AWS_SESSION_TOKEN") or None

        if not access_key_id or not secret_access_key:
            raise CredentialsResolutionError(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required"
            )

        self._credentials = Credentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
        )

        return self._credentials
