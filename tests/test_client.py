import asyncio
import gzip
import logging
import time
import zlib

import brotli
import httpx
import pytest

from conftest import connect_error, streamed
from transferbench.client import TransferClient, decoded_size
from transferbench.encoding import EncodingVariant, get_decoder
from transferbench.metrics import TransferError, TransferResult, encoded_label

URL = "http://encoded.test/data/1000"


def _measure_encoded(handler, variant=EncodingVariant.ALL):
    async def go():
        async with TransferClient(timeout=5, transport=httpx.MockTransport(handler)) as client:
            return await client.measure_encoded(URL, variant)

    return asyncio.run(go())


def _measure_archive(handler):
    async def go():
        async with TransferClient(timeout=5, transport=httpx.MockTransport(handler)) as client:
            return await client.measure_archive("http://archive.test/data/1000")

    return asyncio.run(go())


@pytest.mark.parametrize(
    "encoding,encode",
    [
        ("gzip", gzip.compress),
        ("deflate", zlib.compress),
        ("br", brotli.compress),
    ],
)
def test_measure_encoded_decodes_to_payload_length(payload, encoding, encode):
    """Wire bytes are counted before decoding, decoded size matches the payload."""
    body = encode(payload)

    result = _measure_encoded(
        lambda request: streamed(body, headers={"Content-Encoding": encoding})
    )

    assert isinstance(result, TransferResult)
    assert result.transfer_size == len(body)
    assert result.uncompressed_size == len(payload)
    assert result.content_encoding == encoding
    assert result.transfer_size < result.uncompressed_size


def test_measure_encoded_without_content_encoding_is_a_noop_decode(payload):
    result = _measure_encoded(
        lambda request: streamed(payload, headers={"Content-Type": "application/json"})
    )

    assert result.transfer_size == len(payload)
    assert result.uncompressed_size == result.transfer_size
    assert result.content_encoding is None
    assert result.content_type == "application/json"
    assert result.compression_ratio == 0


def test_measure_encoded_with_unknown_content_encoding_is_a_noop_decode(payload):
    result = _measure_encoded(
        lambda request: streamed(payload[:500], headers={"Content-Encoding": "x-custom"})
    )

    assert result.transfer_size == 500
    assert result.uncompressed_size == 500


def test_measure_encoded_survives_corrupt_stream(payload, caplog):
    """A body that fails to decode is still measured, counted as-is."""
    truncated = gzip.compress(payload)[:100]

    result = _measure_encoded(
        lambda request: streamed(truncated, headers={"Content-Encoding": "gzip"})
    )

    assert isinstance(result, TransferResult)
    assert result.transfer_size == 100
    assert result.uncompressed_size == 100
    assert "Decompression error" in caplog.text


def test_measure_encoded_records_negative_compression():
    """An encoded body larger than the payload is recorded, not rejected."""
    tiny = b"[]"
    body = gzip.compress(tiny)

    result = _measure_encoded(
        lambda request: streamed(body, headers={"Content-Encoding": "gzip"})
    )

    assert result.transfer_size > result.uncompressed_size
    assert result.compression_ratio < 0


@pytest.mark.parametrize(
    "variant,expected",
    [
        (EncodingVariant.ALL, "gzip, deflate, br"),
        (EncodingVariant.GZIP, "gzip"),
        (EncodingVariant.DEFLATE, "deflate"),
        (EncodingVariant.BROTLI, "br"),
    ],
)
def test_measure_encoded_advertises_variant(variant, expected):
    seen = {}

    def handler(request):
        seen["accept-encoding"] = request.headers["accept-encoding"]
        seen["accept"] = request.headers["accept"]
        return streamed(b"[]")

    result = _measure_encoded(handler, variant)

    assert seen == {"accept-encoding": expected, "accept": "application/json"}
    assert result.encoding_variant == variant
    assert variant.value in result.label


def test_measure_encoded_transport_failure_returns_error(caplog):
    result = _measure_encoded(connect_error, EncodingVariant.GZIP)

    assert isinstance(result, TransferError)
    assert result.kind == "transport"
    assert result.url == URL
    assert result.encoding_variant == EncodingVariant.GZIP
    assert "Error measuring" in caplog.text


def test_measure_encoded_timeout_is_a_transport_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = _measure_encoded(handler)

    assert isinstance(result, TransferError)
    assert result.kind == "transport"


def test_measure_encoded_http_error_status_returns_error():
    result = _measure_encoded(lambda request: streamed(b"boom", status=500))

    assert isinstance(result, TransferError)
    assert result.kind == "http_status"


def test_measure_archive_counts_attachment_bytes(archive_handler):
    result = _measure_archive(archive_handler)

    assert isinstance(result, TransferResult)
    assert result.transfer_size == 22_000
    assert result.uncompressed_size is None
    assert result.compression_ratio is None
    assert result.content_type == "application/zip"
    assert result.content_encoding == "none"
    assert result.encoding_variant == EncodingVariant.NONE
    assert result.duration_ms >= 0


def test_measure_archive_does_not_decode_encoding_hint():
    body = gzip.compress(b"x" * 1000)

    result = _measure_archive(
        lambda request: streamed(body, headers={"Content-Encoding": "identity"})
    )

    assert result.transfer_size == len(body)
    assert result.content_encoding == "identity"


def test_measure_archive_transport_failure_returns_error():
    result = _measure_archive(connect_error)

    assert isinstance(result, TransferError)
    assert result.kind == "transport"
    assert result.encoding_variant == EncodingVariant.NONE


def test_health_check():
    def handler(request):
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "ok"})

    async def go():
        async with TransferClient(transport=httpx.MockTransport(handler)) as client:
            up = await client.health_check("http://encoded.test/")
        async with TransferClient(transport=httpx.MockTransport(connect_error)) as client:
            down = await client.health_check("http://encoded.test")
        return up, down

    assert asyncio.run(go()) == (True, False)


def test_client_requires_context_manager():
    with pytest.raises(RuntimeError):
        TransferClient().client


def test_decoded_size_counts_utf8_bytes():
    text = '[{"name": "Zoë"}]'.encode("utf-8")

    assert decoded_size(gzip.compress(text), "gzip") == len(text)
    assert decoded_size(zlib.compress(text), "DEFLATE") == len(text)


def test_decoded_size_accepts_raw_deflate():
    compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
    raw = compressor.compress(b"a" * 5000) + compressor.flush()

    assert decoded_size(raw, "deflate") == 5000


def test_measure_encoded_duration_excludes_decoding(payload, monkeypatch):
    """The timer stops once the last wire byte arrives; decoding happens after."""
    real_decoder = get_decoder("gzip")

    def slow_get_decoder(content_encoding):
        def decode(body):
            time.sleep(0.3)
            return real_decoder(body)

        return decode

    monkeypatch.setattr("transferbench.client.get_decoder", slow_get_decoder)
    body = gzip.compress(payload)

    result = _measure_encoded(lambda request: streamed(body, headers={"Content-Encoding": "gzip"}))

    assert result.uncompressed_size == len(payload)
    assert result.duration_ms < 300


def test_fetch_logs_url_and_duration(caplog):
    caplog.set_level(logging.DEBUG, logger="transferbench.client")

    _measure_encoded(lambda request: streamed(b"[]"), EncodingVariant.BROTLI)

    assert f"{encoded_label(EncodingVariant.BROTLI)}: GET {URL} took" in caplog.text
