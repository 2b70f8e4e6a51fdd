# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from pathlib import Path

import pytest
from kla_sigv4.credentials_resolvers import ProfileCredentialsResolver
from kla_sigv4.exceptions import CredentialsResolutionError

CREDENTIALS_FILE = """\
[default]
aws_access_key_id = default_akid
aws_secret_access_key = default_secret

[dev]
aws_access_key_id = dev_akid
aws_secret_access_key = dev%secret
aws_session_token = dev_session

[incomplete]
aws_access_key_id = incomplete_akid
"""


@pytest.fixture
def credentials_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    path = tmp_path / "credentials"
    path.write_text(CREDENTIALS_FILE)
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(path))
    return path


def test_default_profile(credentials_file: Path):
    credentials = ProfileCredentialsResolver().get_credentials()
    assert credentials.access_key_id == "default_akid"
    assert credentials.secret_access_key == "default_secret"
    assert credentials.session_token is None


def test_explicit_profile(credentials_file: Path):
    credentials = ProfileCredentialsResolver(profile="dev").get_credentials()
    assert credentials.access_key_id == "dev_akid"
    assert credentials.secret_access_key == "dev%secret"
    assert credentials.session_token == "dev_session"


def test_profile_from_environment(
    credentials_file: Path, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("AWS_PROFILE", "dev")
    credentials = ProfileCredentialsResolver().get_credentials()
    assert credentials.access_key_id == "dev_akid"


def test_explicit_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    path = tmp_path / "other-credentials"
    path.write_text(CREDENTIALS_FILE)
    credentials = ProfileCredentialsResolver(path=path).get_credentials()
    assert credentials.access_key_id == "default_akid"


@pytest.mark.parametrize("profile", ["missing", "incomplete"])
def test_unusable_profile(credentials_file: Path, profile: str):
    with pytest.raises(CredentialsResolutionError):
        ProfileCredentialsResolver(profile=profile).get_credentials()


def test_missing_file(tmp_path: Path):
    resolver = ProfileCredentialsResolver(path=tmp_path / "does-not-exist")
    with pytest.raises(CredentialsResolutionError):
        resolver.get_credentials()


def test_malformed_file(tmp_path: Path):
    path = tmp_path / "credentials"
    path.write_text("aws_access_key_id = no_section\n")
    with pytest.raises(CredentialsResolutionError):
        ProfileCredentialsResolver(path=path, profile="default").get_credentials()


def test_credentials_are_cached(credentials_file: Path):
    resolver = ProfileCredentialsResolver()
    first = resolver.get_credentials()

    credentials_file.unlink()
    assert resolver.get_credentials() is first
