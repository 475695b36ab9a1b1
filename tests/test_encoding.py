import gzip
import zlib

import brotli
import pytest

from transferbench.encoding import (
    MEASURED_VARIANTS,
    EncodingVariant,
    compress_body,
    get_decoder,
    negotiate_encoding,
)


@pytest.mark.parametrize(
    "header,expected",
    [
        (None, "identity"),
        ("", "identity"),
        ("identity", "identity"),
        ("zstd", "identity"),
        ("gzip, deflate, br", "gzip"),
        ("br, gzip", "br"),
        ("gzip;q=0.2, br;q=0.8", "br"),
        ("GZIP", "gzip"),
        ("gzip;q=0, deflate", "deflate"),
        ("gzip;q=abc", "gzip"),
    ],
)
def test_negotiate_encoding(header, expected):
    assert negotiate_encoding(header) == expected


def test_variants_advertise_fixed_headers():
    assert EncodingVariant.ALL.accept_encoding == "gzip, deflate, br"
    assert EncodingVariant.GZIP.accept_encoding == "gzip"
    assert EncodingVariant.DEFLATE.accept_encoding == "deflate"
    assert EncodingVariant.BROTLI.accept_encoding == "br"
    assert EncodingVariant.NONE.accept_encoding == "identity"


def test_measured_variants_order():
    assert MEASURED_VARIANTS == (
        EncodingVariant.ALL,
        EncodingVariant.GZIP,
        EncodingVariant.DEFLATE,
        EncodingVariant.BROTLI,
    )


def test_compress_body_uses_standard_formats():
    data = b"hello hello hello hello" * 100

    assert gzip.decompress(compress_body(data, "gzip")) == data
    assert zlib.decompress(compress_body(data, "deflate")) == data
    assert brotli.decompress(compress_body(data, "br")) == data
    assert compress_body(data, "identity") == data

    with pytest.raises(ValueError):
        compress_body(data, "zstd")


def test_get_decoder():
    assert get_decoder(None) is None
    assert get_decoder("identity") is None
    assert get_decoder(" Gzip ") is gzip.decompress
    assert get_decoder("br") is brotli.decompress
