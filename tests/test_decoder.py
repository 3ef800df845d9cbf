"""Single-object JSON decoding with a read limit."""

from __future__ import annotations

import io
import json

import pytest
from conftest import org_payload, paged
from pydantic import ValidationError

from adapters.rsat.decoder import decode, read_limited
from core.domain.models import OrganizationsResponse
from core.errors import ErrorKind, RsatError

LIMIT = 1024 * 1024


def _body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


def test_decodes_single_object():
    page = decode(_body(paged([org_payload(1, "Alpha")])), OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert page.subtotal == 1
    assert page.results[0].name == "Alpha"


def test_decodes_from_stream_with_trailing_whitespace():
    stream = io.BytesIO(_body(paged([])) + b"\n\n")

    page = decode(stream, OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert page.results == []


def test_rejects_multiple_objects():
    body = _body(paged([])) + _body(paged([]))

    with pytest.raises(RsatError) as excinfo:
        decode(body, OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert excinfo.value.kind is ErrorKind.DECODE
    assert excinfo.value.wraps(ErrorKind.MULTIPLE_OBJECTS)


def test_missing_source():
    with pytest.raises(RsatError) as excinfo:
        decode(None, OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert excinfo.value.wraps(ErrorKind.MISSING_SOURCE)


def test_empty_body_is_a_decode_error():
    with pytest.raises(RsatError) as excinfo:
        decode(b"", OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert excinfo.value.kind is ErrorKind.DECODE
    assert isinstance(excinfo.value.cause, json.JSONDecodeError)


def test_body_truncated_by_read_limit_fails_to_decode():
    body = _body(paged([org_payload(n, f"Org {n}") for n in range(20)]))

    with pytest.raises(RsatError) as excinfo:
        decode(body, OrganizationsResponse, source_name="orgs", limit=64)

    assert excinfo.value.kind is ErrorKind.DECODE


def test_schema_mismatch_is_a_decode_error():
    body = _body({"results": [{"name": "no id"}], "subtotal": 1})

    with pytest.raises(RsatError) as excinfo:
        decode(body, OrganizationsResponse, source_name="orgs", limit=LIMIT)

    assert isinstance(excinfo.value.cause, ValidationError)


def test_read_limited():
    assert read_limited(b"abcdefgh", 5) == b"abcde"
    assert read_limited(io.BytesIO(b"abcdefgh"), 3) == b"abc"
    assert read_limited(b"ab", 10) == b"ab"
