# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class SigningError(Exception):
    """Top-level exception to capture errors raised while signing a request."""


class ConfigurationError(SigningError, ValueError):
    """Required signing inputs such as credentials, region, or service are missing or
    invalid."""


class MissingSignedHeaderError(ConfigurationError):
    """A header named in the sign-set is not present on the request."""


class HeaderEncodingError(SigningError, ValueError):
    """A header value cannot be represented as text for canonicalization."""


class PrimitiveError(SigningError):
    """The keyed-hash primitive could not be constructed from the key material."""


class CredentialsResolutionError(SigningError):
    """A credentials resolver was unable to produce credentials."""


class UnsupportedBodyError(SigningError, TypeError):
    """The request body is not bytes, a readable byte stream, or an iterable of bytes."""
