from __future__ import annotations

import io
import json
from email.message import Message
from urllib.error import HTTPError, URLError

import pytest

from webtoolkit.client import push_json_to_remote
from webtoolkit.core.errors import PayloadEncodeError, PushError


class _FakeResponse(io.BytesIO):
    def __init__(self, body: bytes, status: int) -> None:
        super().__init__(body)
        self.status = status

    def getcode(self) -> int:
        return self.status


class _RecordingOpener:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.requests = []

    def open(self, req, *args, **kwargs):
        self.requests.append(req)
        if self.exc is not None:
            raise self.exc
        return self.result


def test_push_json_posts_encoded_body():
    opener = _RecordingOpener(result=_FakeResponse(b"ok", 200))

    resp, status = push_json_to_remote("http://example.com/some/path", {"bar": "baz"}, opener=opener)

    assert status == 200
    assert resp.read() == b"ok"
    req = opener.requests[0]
    assert req.get_method() == "POST"
    assert req.full_url == "http://example.com/some/path"
    assert req.get_header("Content-type") == "application/json"
    assert json.loads(req.data) == {"bar": "baz"}


def test_push_json_returns_non_2xx_responses():
    err = HTTPError("http://example.com/", 500, "Internal Server Error", Message(), io.BytesIO(b"nope"))
    opener = _RecordingOpener(exc=err)

    resp, status = push_json_to_remote("http://example.com/", {"a": 1}, opener=opener)

    assert status == 500
    assert resp is err
    assert resp.read() == b"nope"


def test_push_json_transport_failure():
    opener = _RecordingOpener(exc=URLError("connection refused"))
    with pytest.raises(PushError) as ei:
        push_json_to_remote("http://example.com/", {"a": 1}, opener=opener)
    assert ei.value.status_code == 502


def test_push_json_bad_url():
    with pytest.raises(PushError):
        push_json_to_remote("not a url", {"a": 1}, opener=_RecordingOpener())


def test_push_json_unserializable_payload_sends_nothing():
    opener = _RecordingOpener(result=_FakeResponse(b"", 200))
    with pytest.raises(PayloadEncodeError):
        push_json_to_remote("http://example.com/", {"x": object()}, opener=opener)
    assert opener.requests == []
