# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import logging
from collections.abc import Iterable
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Final

from ._http import AWSRequest, Body, Field, Fields, URI
from .canonical import (
    UNSIGNED_PAYLOAD,
    canonical_request,
    payload_hash,
    select_signed_headers,
)
from .exceptions import ConfigurationError
from .interfaces.identity import AWSCredentialsIdentity, CredentialsResolver
from .signing import (
    ALGORITHM,
    calculate_signature,
    credential_scope,
    format_amz_date,
    normalize_date,
    signing_key,
    string_to_sign,
)

logger: Final = logging.getLogger(__name__)

DEFAULT_SERVICE: str = "execute-api"
REQUIRED_SIGNED_HEADERS: tuple[str, ...] = ("host", "x-amz-date")
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# Headers the signer writes itself. Authorization can never be part of the sign-set.
_UNSIGNABLE_HEADERS: tuple[str, ...] = ("authorization",)


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@dataclass(kw_only=True, frozen=True)
class SigningContext:
    """Per-request signing parameters.

    Only the headers named in ``signed_headers`` (plus ``host``, ``x-amz-date``,
    and the security token and content checksum headers when the signer adds them)
    are covered by the signature. Any other header on the request can be altered in
    transit without invalidating it; the integrity guarantee then extends only to
    those named headers, the method, the path, the query, and the payload hash.

    A context carries a fixed timestamp, so build a new one for every request.
    """

    region: str
    """The region the request is scoped to, for example ``us-east-1``."""

    service: str = DEFAULT_SERVICE
    """The signing name of the target service."""

    date: datetime.datetime = field(default_factory=_utc_now)
    """The signing time. Converted to UTC and truncated to the second; naive values
    are taken to be UTC already."""

    signed_headers: Iterable[str] = ()
    """Additional header names to sign."""

    payload_signing_enabled: bool = True
    """When false, requests sent over https use ``UNSIGNED-PAYLOAD`` instead of
    hashing the body. Plain http requests are always hashed."""

    content_checksum_enabled: bool = False
    """Send the payload hash in ``X-Amz-Content-SHA256`` and sign that header."""

    uri_encode_path: bool = True
    """Percent-encode the path. S3 requires this to be disabled."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", normalize_date(self.date))
        object.__setattr__(self, "signed_headers", tuple(self.signed_headers))

    def header_names(self) -> list[str]:
        """The lowercase sign-set, always starting with the required headers."""
        names = list(REQUIRED_SIGNED_HEADERS)
        for name in self.signed_headers:
            lowered = name.strip().lower()
            if lowered not in names:
                names.append(lowered)
        return names


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    The signer holds no per-request state, so a single instance may be shared.
    """

    def __init__(self, *, credentials_resolver: CredentialsResolver | None = None):
        """
        :param credentials_resolver: Source of credentials used when ``sign`` is
            called without explicit credentials.
        """
        self._credentials_resolver = credentials_resolver

    def sign(
        self,
        *,
        request: AWSRequest,
        context: SigningContext,
        credentials: AWSCredentialsIdentity | None = None,
    ) -> AWSRequest:
        """Generate and apply a SigV4 signature to the supplied request.

        The request's fields are only modified once every signing step succeeded,
        so a failure leaves them exactly as they were handed in. A one-shot body
        that was already consumed for hashing is replaced by an in-memory buffer
        either way.

        :param request: An AWSRequest to sign prior to sending to the service.
        :param context: SigningContext defining the region, service, date, and
            sign-set.
        :param credentials: The identity to sign with. Resolved from the injected
            resolver when omitted.
        :returns: The same request object, now carrying ``Authorization``.
        :raises ConfigurationError: A required input is missing or empty.
        :raises MissingSignedHeaderError: A header in the sign-set isn't present.
        :raises HeaderEncodingError: A signed header value isn't valid header text.
        """
        self._validate_context(context=context)
        credentials = self._resolve_credentials(credentials)
        self._validate_credentials(credentials=credentials)
        logger.debug(
            "Signing %s for service %s in region %s",
            request,
            context.service,
            context.region,
        )

        working_fields = deepcopy(request.fields)
        header_names = context.header_names()
        required_fields = self._required_fields(
            request=request, context=context, credentials=credentials
        )
        if credentials.session_token:
            header_names.append("x-amz-security-token")

        if context.content_checksum_enabled and "x-amz-content-sha256" in header_names:
            header_names.remove("x-amz-content-sha256")
        for required_field in required_fields:
            working_fields.set_field(required_field)
        normalized_fields = select_signed_headers(working_fields, header_names)

        hashed_payload, body = self._hash_payload(request=request, context=context)
        try:
            if context.content_checksum_enabled:
                required_fields.append(
                    Field(name="X-Amz-Content-SHA256", values=[hashed_payload])
                )
                normalized_fields["x-amz-content-sha256"] = hashed_payload
                normalized_fields = dict(sorted(normalized_fields.items()))
            signature = self._signature(
                request=request,
                context=context,
                credentials=credentials,
                normalized_fields=normalized_fields,
                hashed_payload=hashed_payload,
            )
        except Exception:
            # A consumed one-shot body must still be sendable.
            self._apply(request=request, fields=[], body=body)
            raise

        scope = credential_scope(
            date=context.date, region=context.region, service=context.service
        )
        authorization = self.generate_authorization_field(
            credential=f"{credentials.access_key_id}/{scope}",
            signed_headers=list(normalized_fields),
            signature=signature,
        )
        required_fields.append(authorization)

        self._apply(request=request, fields=required_fields, body=body)
        logger.debug("Signed headers: %s", ";".join(normalized_fields))
        return request

    def _signature(
        self,
        *,
        request: AWSRequest,
        context: SigningContext,
        credentials: AWSCredentialsIdentity,
        normalized_fields: dict[str, str],
        hashed_payload: str,
    ) -> str:
        canonical = canonical_request(
            method=request.method,
            path=request.destination.path,
            query=request.destination.query,
            headers=normalized_fields,
            hashed_payload=hashed_payload,
            uri_encode_path=context.uri_encode_path,
        )
        to_sign = string_to_sign(
            date=context.date,
            region=context.region,
            service=context.service,
            canonical_request=canonical,
        )
        logger.debug("String to sign:\n%s", to_sign)

        with signing_key(
            secret_key=credentials.secret_access_key,
            date=context.date,
            region=context.region,
            service=context.service,
        ) as key:
            return calculate_signature(key=key, string_to_sign=to_sign)

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        signed_headers_str = ";".join(signed_headers)
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def _resolve_credentials(
        self, credentials: AWSCredentialsIdentity | None
    ) -> AWSCredentialsIdentity:
        if credentials is not None:
            return credentials
        if self._credentials_resolver is None:
            raise ConfigurationError(
                "AWS credentials are required when creating a SigV4 request. Pass "
                "credentials or construct the signer with a credentials_resolver."
            )
        return self._credentials_resolver.get_credentials()

    def _validate_credentials(self, *, credentials: AWSCredentialsIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(credentials, AWSCredentialsIdentity):  # pyright: ignore
            raise ConfigurationError(
                "Received unexpected value for credentials parameter. Expected "
                f"AWSCredentialsIdentity but received {type(credentials)}."
            )
        if not credentials.access_key_id:
            raise ConfigurationError("An access key ID is required for signing.")
        if not credentials.secret_access_key:
            raise ConfigurationError("A secret access key is required for signing.")
        if credentials.is_expired:
            raise ConfigurationError(
                f"Provided credentials expired at {credentials.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _validate_context(self, *, context: SigningContext) -> None:
        if not context.region:
            raise ConfigurationError(
                "region is required when creating a SigV4 request"
            )
        if not context.service:
            raise ConfigurationError(
                "service is required when creating a SigV4 request"
            )
        for name in context.signed_headers:
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError(
                    f"Signed header names must be non-empty strings, got {name!r}."
                )
            if name.strip().lower() in _UNSIGNABLE_HEADERS:
                raise ConfigurationError(
                    f"Header {name!r} is set by the signer and can't be signed."
                )

    def _required_fields(
        self,
        *,
        request: AWSRequest,
        context: SigningContext,
        credentials: AWSCredentialsIdentity,
    ) -> list[Field]:
        required: list[Field] = []
        if "Host" not in request.fields:
            host = self._host_field_value(request.destination)
            required.append(Field(name="Host", values=[host]))
        # X-Amz-Date is always replaced with the signing date.
        amz_date = format_amz_date(context.date)
        required.append(Field(name="X-Amz-Date", values=[amz_date]))
        if credentials.session_token:
            required.append(
                Field(name="X-Amz-Security-Token", values=[credentials.session_token])
            )
        return required

    def _host_field_value(self, uri: URI) -> str:
        if not uri.host:
            raise ConfigurationError(
                "The request has no Host header and its URL has no host to derive "
                "one from."
            )
        host = f"[{uri.host}]" if ":" in uri.host else uri.host
        if uri.port is None or DEFAULT_PORTS.get(uri.scheme) == uri.port:
            return host
        return f"{host}:{uri.port}"

    def _should_sha256_sign_payload(
        self, *, request: AWSRequest, context: SigningContext
    ) -> bool:
        # All insecure connections should be signed
        if request.destination.scheme != "https":
            return True

        return context.payload_signing_enabled

    def _hash_payload(
        self, *, request: AWSRequest, context: SigningContext
    ) -> tuple[str, Body | None]:
        if not self._should_sha256_sign_payload(request=request, context=context):
            return UNSIGNED_PAYLOAD, request.body
        return payload_hash(request.body)

    def _apply(
        self, *, request: AWSRequest, fields: list[Field], body: Body | None
    ) -> None:
        target: Fields = request.fields
        for signing_field in fields:
            target.set_field(signing_field)
        if body is not request.body:
            request.body = body
