# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest
from kla_sigv4.credentials_resolvers import EnvironmentCredentialsResolver
from kla_sigv4.exceptions import CredentialsResolutionError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_no_values_set():
    with pytest.raises(CredentialsResolutionError):
        EnvironmentCredentialsResolver().get_credentials()


def test_akid_missing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")

    with pytest.raises(CredentialsResolutionError):
        EnvironmentCredentialsResolver().get_credentials()


def test_secret_missing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "akid")

    with pytest.raises(CredentialsResolutionError):
        EnvironmentCredentialsResolver().get_credentials()


def test_minimum_required(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "akid")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")

    credentials = EnvironmentCredentialsResolver().get_credentials()
    assert credentials.access_key_id == "akid"
    assert credentials.secret_access_key == "secret"
    assert credentials.session_token is None


def test_all_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "akid")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "session")

    credentials = EnvironmentCredentialsResolver().get_credentials()
    assert credentials.access_key_id == "akid"
    assert credentials.secret_access_key == "secret"
    assert credentials.session_token == "session"


def test_credentials_are_cached(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "akid")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    resolver = EnvironmentCredentialsResolver()
    first = resolver.get_credentials()

    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "other")
    assert resolver.get_credentials() is first
