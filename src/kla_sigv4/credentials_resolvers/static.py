# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from ..interfaces.identity import AWSCredentialsIdentity, CredentialsResolver


class StaticCredentialsResolver(CredentialsResolver):
    """Resolve Static AWS Credentials."""

    def __init__(self, *, credentials: AWSCredentialsIdentity) -> None:
        self._credentials = credentials

    def get_credentials(self) -> AWSCredentialsIdentity:
        return self._credentials
