# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Pure functions producing the canonical forms used by SigV4.

The SigV4 specification defines the canonical request to be::

    <HTTPMethod>\\n
    <CanonicalURI>\\n
    <CanonicalQueryString>\\n
    <CanonicalHeaders>\\n
    <SignedHeaders>\\n
    <HashedPayload>

Each component has its own function here so mismatches against a verifier can be
narrowed down one segment at a time.
"""

import io
import re
from collections.abc import Iterable, Mapping
from hashlib import sha256
from urllib.parse import parse_qsl, quote

from ._http import Body, Fields
from .exceptions import (
    HeaderEncodingError,
    MissingSignedHeaderError,
    UnsupportedBodyError,
)
from .interfaces.io import ByteStream, Seekable

UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

_READ_CHUNK_SIZE = 64 * 1024


def canonical_method(method: str) -> str:
    return method.upper()


def canonical_uri(path: str | None, *, uri_encode_path: bool = True) -> str:
    """Percent-encode a path as sent on the wire, leaving ``/`` untouched.

    Existing escapes are encoded again, so ``%20`` becomes ``%2520``.

    :param path: The path component as sent. ``None`` or empty becomes ``/``.
    :param uri_encode_path: When false the path is used as given apart from dot
        segment removal, which is what S3 expects.
    """
    if not path:
        path = "/"

    if uri_encode_path:
        normalized_path = _remove_dot_segments(path)
        return quote(string=normalized_path, safe="/")
    else:
        return _remove_dot_segments(path, remove_consecutive_slashes=False)


def canonical_query(query: str | None) -> str:
    """Encode and sort the query string.

    Parameters without a value are rendered as ``key=``. Only the first ``=`` of a
    pair separates key from value, later ones are encoded as part of the value.
    """
    if not query:
        return ""

    query_params = parse_qsl(qs=query, keep_blank_values=True)
    query_parts = (
        (quote(string=key, safe=""), quote(string=value, safe=""))
        for key, value in query_params
    )
    # key-value pairs must be in sorted order for their encoded forms.
    return "&".join(f"{key}={value}" for key, value in sorted(query_parts))


def normalize_header_value(name: str, values: Iterable[str]) -> str:
    """Trim each value, collapse inner whitespace runs, and join values with ``,``."""
    normalized: list[str] = []
    for value in values:
        if not isinstance(value, str):
            raise HeaderEncodingError(
                f"Value for header {name!r} must be a str to be signed, "
                f"got {type(value).__name__}."
            )
        if _has_control_characters(value):
            raise HeaderEncodingError(
                f"Value for header {name!r} contains control characters and "
                "cannot be canonicalized."
            )
        normalized.append(" ".join(value.split()))
    return ",".join(normalized)


def select_signed_headers(
    fields: Fields, signed_header_names: Iterable[str]
) -> dict[str, str]:
    """Collect the canonical value of every header in the sign-set.

    The result is keyed by lowercase header name and sorted by that name.

    :raises MissingSignedHeaderError: A header in the sign-set is not on the request.
    :raises HeaderEncodingError: A header value can't be represented as text.
    """
    selected: dict[str, str] = {}
    for name in signed_header_names:
        lowered = name.lower()
        field = fields.get(lowered)
        if field is None:
            raise MissingSignedHeaderError(
                f"Missing header {lowered!r} which is required for signing."
            )
        selected[lowered] = normalize_header_value(lowered, field.values)
    return dict(sorted(selected.items()))


def canonical_headers(headers: Mapping[str, str]) -> str:
    """Render ``name:value\\n`` for each already-normalized header."""
    return "".join(f"{name}:{value}\n" for name, value in sorted(headers.items()))


def signed_headers(header_names: Iterable[str]) -> str:
    return ";".join(sorted(name.lower() for name in header_names))


def payload_hash(body: Body | None) -> tuple[str, Body | None]:
    """Compute the hex SHA-256 digest of a request body.

    Returns the digest along with the body that should be sent afterwards. Seekable
    streams are rewound to where they started and returned as is. One-shot
    iterables are consumed and replaced with an in-memory buffer.
    """
    if body is None:
        return EMPTY_SHA256_HASH, None

    if isinstance(body, bytes | bytearray):
        return sha256(body).hexdigest(), body

    if isinstance(body, str):
        raise UnsupportedBodyError(
            "Request bodies must be bytes, not str. Encode the body before signing."
        )

    checksum = sha256()
    if isinstance(body, ByteStream) and isinstance(body, Seekable):
        position = body.tell()
        while chunk := body.read(_READ_CHUNK_SIZE):
            checksum.update(chunk)
        body.seek(position)
        return checksum.hexdigest(), body

    buffer = io.BytesIO()
    if isinstance(body, ByteStream):
        while chunk := body.read(_READ_CHUNK_SIZE):
            buffer.write(chunk)
            checksum.update(chunk)
    elif isinstance(body, Iterable):
        for chunk in body:
            buffer.write(chunk)
            checksum.update(chunk)
    else:
        raise UnsupportedBodyError(
            f"Unsupported body type {type(body).__name__}. Expected bytes, a "
            "readable byte stream, or an iterable of bytes."
        )
    buffer.seek(0)
    return checksum.hexdigest(), buffer


def canonical_request(
    *,
    method: str,
    path: str | None,
    query: str | None,
    headers: Mapping[str, str],
    hashed_payload: str,
    uri_encode_path: bool = True,
) -> str:
    """Join the six canonical components.

    :param headers: Normalized sign-set headers as returned by
        :py:func:`select_signed_headers`.
    :param hashed_payload: The payload digest or :py:data:`UNSIGNED_PAYLOAD`.
    """
    return (
        f"{canonical_method(method)}\n"
        f"{canonical_uri(path, uri_encode_path=uri_encode_path)}\n"
        f"{canonical_query(query)}\n"
        f"{canonical_headers(headers)}\n"
        f"{signed_headers(headers)}\n"
        f"{hashed_payload}"
    )


def _has_control_characters(value: str) -> bool:
    return any((ord(char) < 0x20 and char != "\t") or char == "\x7f" for char in value)


def _remove_dot_segments(path: str, remove_consecutive_slashes: bool = True) -> str:
    """Removes dot segments from a path per :rfc:`3986#section-5.2.4`.

    Optionally removes consecutive slashes, true by default.
    :param path: The path to modify.
    :param remove_consecutive_slashes: Whether to remove consecutive slashes.
    :returns: The path with dot segments removed.
    """
    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    result = "/".join(output)
    if remove_consecutive_slashes:
        result = re.sub(r"/{2,}", "/", result)
    return result
