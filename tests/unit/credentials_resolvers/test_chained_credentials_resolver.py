# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from kla_sigv4 import Credentials
from kla_sigv4.credentials_resolvers import (
    ChainedCredentialsResolver,
    EnvironmentCredentialsResolver,
    ProfileCredentialsResolver,
    StaticCredentialsResolver,
    create_default_chain,
)
from kla_sigv4.exceptions import CredentialsResolutionError


class FailingResolver:
    def __init__(self) -> None:
        self.calls = 0

    def get_credentials(self) -> Credentials:
        self.calls += 1
        raise CredentialsResolutionError("unavailable")


class CountingResolver:
    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.calls = 0

    def get_credentials(self) -> Credentials:
        self.calls += 1
        return self.credentials


def test_first_successful_resolver_wins():
    first = Credentials(access_key_id="first", secret_access_key="secret")
    second = Credentials(access_key_id="second", secret_access_key="secret")
    failing = FailingResolver()
    resolver = ChainedCredentialsResolver(
        resolvers=(
            failing,
            StaticCredentialsResolver(credentials=first),
            StaticCredentialsResolver(credentials=second),
        )
    )
    assert resolver.get_credentials() is first
    assert failing.calls == 1


def test_all_resolvers_fail():
    resolver = ChainedCredentialsResolver(
        resolvers=(FailingResolver(), FailingResolver())
    )
    with pytest.raises(CredentialsResolutionError):
        resolver.get_credentials()


def test_credentials_are_cached_until_expired():
    valid = CountingResolver(
        Credentials(
            access_key_id="akid",
            secret_access_key="secret",
            expiration=datetime.now(UTC) + timedelta(hours=1),
        )
    )
    resolver = ChainedCredentialsResolver(resolvers=(valid,))
    resolver.get_credentials()
    resolver.get_credentials()
    assert valid.calls == 1

    expired = CountingResolver(
        Credentials(
            access_key_id="akid",
            secret_access_key="secret",
            expiration=datetime(2020, 1, 1, tzinfo=UTC),
        )
    )
    resolver = ChainedCredentialsResolver(resolvers=(expired,))
    resolver.get_credentials()
    resolver.get_credentials()
    assert expired.calls == 2


def test_unexpected_errors_propagate():
    class BrokenResolver:
        def get_credentials(self) -> Credentials:
            raise RuntimeError("broken")

    resolver = ChainedCredentialsResolver(resolvers=(BrokenResolver(),))
    with pytest.raises(RuntimeError):
        resolver.get_credentials()


def test_default_chain_prefers_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    path = tmp_path / "credentials"
    path.write_text(
        "[default]\naws_access_key_id = file_akid\naws_secret_access_key = s\n"
    )
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(path))
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "env_akid")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "env_secret")

    assert create_default_chain().get_credentials().access_key_id == "env_akid"


def test_default_chain_falls_back_to_profile(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    path = tmp_path / "credentials"
    path.write_text(
        "[ci]\naws_access_key_id = file_akid\naws_secret_access_key = s\n"
    )
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(path))
    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN"):
        monkeypatch.delenv(name, raising=False)

    chain = create_default_chain(profile="ci")
    assert chain.get_credentials().access_key_id == "file_akid"


def test_default_chain_order():
    chain = create_default_chain()
    resolver_types = [type(resolver) for resolver in chain._resolvers]  # type: ignore[attr-defined]
    assert resolver_types == [
        EnvironmentCredentialsResolver,
        ProfileCredentialsResolver,
    ]
