"""
HTTP content-coding support: the variants the harness advertises, server-side
negotiation and the codecs for gzip, deflate and brotli.
"""

from __future__ import annotations

import gzip
import zlib
from enum import Enum

import brotli

# Maximum compression on the server side
GZIP_COMPRESSION_LEVEL = 9
DEFLATE_COMPRESSION_LEVEL = 9
BROTLI_QUALITY = 11

SUPPORTED_ENCODINGS = ("gzip", "deflate", "br")


class EncodingVariant(str, Enum):
    """What a measurement advertises in its Accept-Encoding header."""

    ALL = "all"
    GZIP = "gzip"
    DEFLATE = "deflate"
    BROTLI = "brotli"
    NONE = "none"

    @property
    def accept_encoding(self) -> str:
        return _ACCEPT_ENCODING[self]


_ACCEPT_ENCODING = {
    EncodingVariant.ALL: ", ".join(SUPPORTED_ENCODINGS),
    EncodingVariant.GZIP: "gzip",
    EncodingVariant.DEFLATE: "deflate",
    EncodingVariant.BROTLI: "br",
    EncodingVariant.NONE: "identity",
}

# Legs measured by a comparison, in invocation order
MEASURED_VARIANTS = (
    EncodingVariant.ALL,
    EncodingVariant.GZIP,
    EncodingVariant.DEFLATE,
    EncodingVariant.BROTLI,
)


def negotiate_encoding(accept_encoding: str | None) -> str:
    """Pick the content-coding to answer an Accept-Encoding header with.

    Highest q-value wins; equal q-values keep the client's order. Returns
    "identity" when nothing supported is acceptable.

    Example:
        >>> negotiate_encoding("br;q=0.5, gzip")
        'gzip'
    """
    if not accept_encoding:
        return "identity"

    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_encoding.split(",")):
        token, _, params = part.strip().lower().partition(";")
        token = token.strip()
        if token not in SUPPORTED_ENCODINGS:
            continue

        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 1.0
        if quality > 0:
            candidates.append((-quality, position, token))

    if not candidates:
        return "identity"
    return min(candidates)[2]


def compress_body(data: bytes, encoding: str) -> bytes:
    """Encode a response body with the given content-coding."""
    if encoding == "gzip":
        return gzip.compress(data, compresslevel=GZIP_COMPRESSION_LEVEL)
    if encoding == "deflate":
        return zlib.compress(data, DEFLATE_COMPRESSION_LEVEL)
    if encoding == "br":
        return brotli.compress(data, quality=BROTLI_QUALITY)
    if encoding == "identity":
        return data
    raise ValueError(f"Unsupported content-coding: {encoding}")


def _inflate(data: bytes) -> bytes:
    # Some servers send raw deflate without the zlib wrapper
    try:
        return zlib.decompress(data)
    except zlib.error:
        return zlib.decompress(data, -zlib.MAX_WBITS)


_DECODERS = {
    "gzip": gzip.decompress,
    "deflate": _inflate,
    "br": brotli.decompress,
}


def get_decoder(content_encoding: str | None):
    """Return the decoder for a Content-Encoding value, or None if unsupported."""
    if not content_encoding:
        return None
    return _DECODERS.get(content_encoding.strip().lower())
