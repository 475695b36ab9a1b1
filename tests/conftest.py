import gzip
import json
import os
import struct
import zlib

import httpx
import pytest


def pytest_configure(config):
    """
    Hook that runs before test collection.
    Point the harness at hosts that never resolve, so nothing reaches the network.
    """
    os.environ["ENCODED_BASE_URL"] = "http://encoded.test"
    os.environ["ARCHIVE_BASE_URL"] = "http://archive.test"


def json_payload(records: int, total_bytes: int | None = None) -> bytes:
    """A JSON array of `records` small records, space-padded to `total_bytes`."""
    body = json.dumps(
        [{"id": i, "name": f"User {i}"} for i in range(records)], separators=(",", ":")
    ).encode()
    if total_bytes is not None:
        assert len(body) <= total_bytes
        body += b" " * (total_bytes - len(body))
    return body


def gzip_exact(payload: bytes, total_bytes: int) -> bytes:
    """Gzip `payload` into a member of exactly `total_bytes` bytes.

    The deflate stream is padded out with a gzip FEXTRA header field.
    """
    compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
    deflated = compressor.compress(payload) + compressor.flush()
    extra_len = total_bytes - 10 - 2 - len(deflated) - 8
    assert 0 <= extra_len <= 0xFFFF

    header = b"\x1f\x8b\x08\x04" + b"\x00\x00\x00\x00" + b"\x02\xff"
    extra = struct.pack("<H", extra_len) + b"\x00" * extra_len
    trailer = struct.pack("<II", zlib.crc32(payload) & 0xFFFFFFFF, len(payload) & 0xFFFFFFFF)
    return header + extra + deflated + trailer


def streamed(body: bytes, status: int = 200, headers: dict | None = None) -> httpx.Response:
    """A stub reply with its body left unread, so `aiter_raw()` sees the wire bytes."""
    return httpx.Response(status, headers=headers, stream=httpx.ByteStream(body))


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.fixture
def payload() -> bytes:
    return json_payload(1000, 100_000)


@pytest.fixture
def make_transport():
    """Build a MockTransport from per-host handlers; records every request it sees."""

    def factory(encoded=None, archive=None):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            target = encoded if request.url.host == "encoded.test" else archive
            if target is None:
                return connect_error(request)
            return target(request)

        transport = httpx.MockTransport(handler)
        transport.seen = seen
        return transport

    return factory


@pytest.fixture
def negotiating_handler(payload):
    """Encoded endpoint stub that answers with whatever coding the client asks for first."""

    def handler(request: httpx.Request) -> httpx.Response:
        accept = request.headers.get("accept-encoding", "")
        first = accept.split(",")[0].strip()
        if first == "gzip":
            return streamed(gzip.compress(payload), headers={"Content-Encoding": "gzip"})
        if first == "deflate":
            return streamed(zlib.compress(payload), headers={"Content-Encoding": "deflate"})
        return streamed(payload, headers={"Content-Type": "application/json"})

    return handler


@pytest.fixture
def archive_handler():
    def handler(request: httpx.Request) -> httpx.Response:
        return streamed(b"PK" + b"\x00" * 21_998, headers={"Content-Type": "application/zip"})

    return handler
