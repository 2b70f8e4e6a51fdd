# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""KLA SigV4 provides stand-alone AWS Signature Version 4 request signing for use
with HTTP tools such as AioHTTP, Curl, Requests, urllib3, etc."""

from __future__ import annotations

from ._http import AWSRequest, Field, Fields, URI
from ._identity import Credentials
from .config import SigningConfig
from .exceptions import (
    ConfigurationError,
    CredentialsResolutionError,
    HeaderEncodingError,
    MissingSignedHeaderError,
    PrimitiveError,
    SigningError,
    UnsupportedBodyError,
)
from .signers import SigningContext, SigV4Signer

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSRequest",
    "ConfigurationError",
    "Credentials",
    "CredentialsResolutionError",
    "Field",
    "Fields",
    "HeaderEncodingError",
    "MissingSignedHeaderError",
    "PrimitiveError",
    "SigV4Signer",
    "SigningConfig",
    "SigningContext",
    "SigningError",
    "UnsupportedBodyError",
)
