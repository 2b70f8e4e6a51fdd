# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Minimal HTTP request model accepted by the signer.

Callers translate the request of whatever HTTP client they use into an
:py:class:`AWSRequest`, sign it, and copy the resulting fields back.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

from .interfaces.io import ByteStream

type Body = bytes | bytearray | Iterable[bytes] | ByteStream
"""Payload types the signer knows how to hash."""


class Field:
    """A name-value pair representing a single header in an HTTP request.

    All field names are case insensitive and case-variance must be treated as
    equivalent. Names are preserved as given for accuracy during transmission.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def as_string(self, delimiter: str = ", ") -> str:
        """Get delimited string of all values for transmission.

        If the ``Field`` has zero values, the empty string is returned. If the ``Field``
        has exactly one value, the value is returned unmodified. Multi-valued fields
        have any value containing a comma or double quote quoted and escaped.
        """
        value_count = len(self.values)
        if value_count == 0:
            return ""
        if value_count == 1:
            return self.values[0]
        return delimiter.join(quote_and_escape_field_value(val) for val in self.values)

    def __eq__(self, other: object) -> bool:
        """Name and values must match.

        Values order must match.
        """
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, value={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries mapped by case-insensitive name.

        :param initial: Initial list of ``Field`` objects. Names must be unique once
            lowercased.
        """
        init_fields = list(initial) if initial is not None else []
        init_field_names = [self._normalize_field_name(fld.name) for fld in init_fields]
        fname_counter = Counter(init_field_names)
        repeated_names_exist = (
            len(init_fields) > 0 and fname_counter.most_common(1)[0][1] > 1
        )
        if repeated_names_exist:
            non_unique_names = [name for name, num in fname_counter.items() if num > 1]
            raise ValueError(
                "Field names of the initial list of fields must be unique. The "
                "following normalized field names appear more than once: "
                f"{', '.join(non_unique_names)}."
            )
        init_tuples = zip(init_field_names, init_fields)
        self.entries: OrderedDict[str, Field] = OrderedDict(init_tuples)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str | Iterable[str]]) -> Fields:
        """Build ``Fields`` from a plain header mapping.

        A string value becomes a single-valued field; any other iterable supplies
        one value per item.
        """
        fields = cls()
        for name, value in headers.items():
            values = [value] if isinstance(value, str) else list(value)
            if name in fields:
                for val in values:
                    fields[name].add(val)
            else:
                fields.set_field(Field(name=name, values=values))
        return fields

    def set_field(self, field: Field) -> None:
        """Alias for __setitem__ to utilize the field.name for the entry key."""
        self.__setitem__(field.name, field)

    def __setitem__(self, name: str, field: Field) -> None:
        """Set or override entry for a Field name.

        Overriding an existing entry keeps its position in the collection.
        """
        normalized_name = self._normalize_field_name(name)
        normalized_field_name = self._normalize_field_name(field.name)
        if normalized_name != normalized_field_name:
            raise ValueError(
                f"Supplied key {name} does not match Field.name "
                f"provided: {normalized_field_name}"
            )
        self.entries[normalized_name] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self[key] if key in self else default

    def __getitem__(self, name: str) -> Field:
        """Retrieve Field entry."""
        normalized_name = self._normalize_field_name(name)
        return self.entries[normalized_name]

    def _normalize_field_name(self, name: str) -> str:
        """Normalize field names.

        For use as key in ``entries``.
        """
        return name.lower()

    def __eq__(self, other: object) -> bool:
        """Entries must match in values and order."""
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Fields({self.entries})"

    def __contains__(self, key: str) -> bool:
        return self._normalize_field_name(key) in self.entries


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for an :py:class:`AWSRequest`.

    ``path`` and ``query`` hold those components exactly as they appear on the
    wire, percent-escapes included. The signer encodes the path once more when it
    builds the canonical request.
    """

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI as sent."""

    query: str | None = None
    """Query component of the URI as string."""

    @classmethod
    def from_url(cls, url: str) -> URI:
        """Parse an absolute URL.

        Userinfo and fragment are dropped since neither is sent or signed.
        """
        parts = urlparse(url)
        return cls(
            scheme=parts.scheme or "https",
            host=parts.hostname or "",
            port=parts.port,
            path=parts.path or None,
            query=parts.query or None,
        )


class AWSRequest:
    """The outbound HTTP request handed to the signer.

    The signer mutates ``fields`` in place and may replace a one-shot ``body``
    iterable with an equivalent in-memory buffer after hashing it.
    """

    def __init__(
        self,
        *,
        destination: URI,
        method: str,
        body: Body | None = None,
        fields: Fields | None = None,
    ):
        self.destination = destination
        self.method = method
        self.body = body
        self.fields = fields if fields is not None else Fields()

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str | Iterable[str]] | None = None,
        body: Body | None = None,
    ) -> AWSRequest:
        """Assemble a request from an absolute URL and a plain header mapping."""
        return cls(
            destination=URI.from_url(url),
            method=method,
            body=body,
            fields=Fields.from_mapping(headers or {}),
        )

    def __repr__(self) -> str:
        # The query is left out, it may carry secrets.
        destination = self.destination
        location = f"{destination.scheme}://{destination.host}{destination.path or '/'}"
        return f"AWSRequest(method={self.method!r}, destination={location!r})"


def quote_and_escape_field_value(value: str) -> str:
    """Escapes and quotes a single :class:`Field` value if necessary.

    See :func:`Field.as_string` for quoting and escaping logic.
    """
    chars_to_quote = (",", '"')
    if any(char in chars_to_quote for char in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    else:
        return value
