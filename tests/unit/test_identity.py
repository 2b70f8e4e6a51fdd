# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime, timedelta

import pytest
from kla_sigv4 import Credentials
from kla_sigv4.interfaces.identity import AWSCredentialsIdentity


@pytest.mark.parametrize(
    "access_key_id,secret_access_key,session_token,expiration",
    [
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            None,
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC),
        ),
    ],
)
def test_credentials(
    access_key_id: str,
    secret_access_key: str,
    session_token: str | None,
    expiration: datetime | None,
) -> None:
    creds = Credentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        expiration=expiration,
    )
    assert creds.access_key_id == access_key_id
    assert creds.secret_access_key == secret_access_key
    assert creds.session_token == session_token
    assert creds.expiration == expiration
    assert isinstance(creds, AWSCredentialsIdentity)


@pytest.mark.parametrize(
    "expiration,is_expired",
    [
        (None, False),
        (datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        (datetime.now(UTC) + timedelta(hours=1), False),
    ],
)
def test_credentials_expired(expiration: datetime | None, is_expired: bool) -> None:
    creds = Credentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        expiration=expiration,
    )
    assert creds.is_expired is is_expired


def test_credentials_repr_hides_secrets() -> None:
    creds = Credentials(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token="SESS_TOKEN_1234",
    )
    assert "AKID1234EXAMPLE" in repr(creds)
    assert "SECRET1234" not in repr(creds)
    assert "SESS_TOKEN_1234" not in repr(creds)
