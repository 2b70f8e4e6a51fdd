# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
from collections.abc import Iterator
from contextlib import contextmanager
from hashlib import sha256

from .exceptions import PrimitiveError

ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_DATE_FORMAT: str = "%Y%m%d"
SCOPE_TERMINATOR: str = "aws4_request"


def normalize_date(date: datetime.datetime) -> datetime.datetime:
    """Convert to UTC and drop sub-second precision.

    Naive datetimes are assumed to already be in UTC.
    """
    if date.tzinfo is None:
        date = date.replace(tzinfo=datetime.UTC)
    return date.astimezone(datetime.UTC).replace(microsecond=0)


def format_amz_date(date: datetime.datetime) -> str:
    """Format a timestamp as ``YYYYMMDD'T'HHMMSS'Z'``."""
    return normalize_date(date).strftime(SIGV4_TIMESTAMP_FORMAT)


def credential_scope(*, date: datetime.datetime, region: str, service: str) -> str:
    formatted_date = normalize_date(date).strftime(SIGV4_DATE_FORMAT)
    # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
    return f"{formatted_date}/{region}/{service}/{SCOPE_TERMINATOR}"


def string_to_sign(
    *,
    date: datetime.datetime,
    region: str,
    service: str,
    canonical_request: str,
) -> str:
    """The string to sign concatenates the formal identifier of the signing
    algorithm, the signing DateTime, the scope of the credentials, and a hash of the
    canonical request.

    The SigV4 specification defines the string to sign as:
        Algorithm \\n
        RequestDateTime \\n
        CredentialScope  \\n
        HashedCanonicalRequest
    """
    scope = credential_scope(date=date, region=region, service=service)
    return (
        f"{ALGORITHM}\n"
        f"{format_amz_date(date)}\n"
        f"{scope}\n"
        f"{sha256(canonical_request.encode()).hexdigest()}"
    )


@contextmanager
def signing_key(
    *,
    secret_key: str,
    date: datetime.datetime,
    region: str,
    service: str,
) -> Iterator[bytearray]:
    """Derive the signing key scoped to a day, region, and service.

    The key is yielded as a mutable buffer which is overwritten with zeros when the
    block exits, whether or not it raised.

    :raises PrimitiveError: The key material could not be used with HMAC-SHA256.
    """
    # Components of Signing Key Calculation
    #
    # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
    date_stamp = normalize_date(date).strftime(SIGV4_DATE_FORMAT)
    key = bytearray()
    try:
        key[:] = _hash(key=_encode(f"AWS4{secret_key}"), value=date_stamp)
        for value in (region, service, SCOPE_TERMINATOR):
            key[:] = _hash(key=key, value=value)
        yield key
    finally:
        key[:] = bytes(len(key))


def calculate_signature(*, key: bytes | bytearray, string_to_sign: str) -> str:
    """Sign the string to sign with a derived signing key."""
    return _hash(key=key, value=string_to_sign).hex()


def _hash(*, key: bytes | bytearray, value: str) -> bytes:
    msg = _encode(value)
    try:
        return hmac.new(key=key, msg=msg, digestmod=sha256).digest()
    except (TypeError, ValueError) as e:
        raise PrimitiveError("Unable to compute HMAC-SHA256 for signing.") from e


def _encode(value: str) -> bytes:
    try:
        return value.encode()
    except UnicodeEncodeError as e:
        raise PrimitiveError("Signing inputs must be encodable as UTF-8.") from e
