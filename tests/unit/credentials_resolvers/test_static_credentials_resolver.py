# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from kla_sigv4 import Credentials
from kla_sigv4.credentials_resolvers import StaticCredentialsResolver
from kla_sigv4.interfaces.identity import CredentialsResolver


def test_returns_configured_credentials():
    credentials = Credentials(access_key_id="akid", secret_access_key="secret")
    resolver = StaticCredentialsResolver(credentials=credentials)

    assert isinstance(resolver, CredentialsResolver)
    assert resolver.get_credentials() is credentials
