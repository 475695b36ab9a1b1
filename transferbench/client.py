"""
HTTP client that measures what a payload costs on the wire.

Each measurement is exactly one GET. Bytes are counted as they arrive, before
any content-coding is undone, so transfer_size is the true wire size.
"""

from __future__ import annotations

import logging

import httpx

from transferbench.config import get_request_timeout
from transferbench.encoding import EncodingVariant, get_decoder
from transferbench.metrics import (
    ARCHIVE_LABEL,
    TransferError,
    TransferOutcome,
    TransferResult,
    encoded_label,
)
from transferbench.timing import TimingContext

logger = logging.getLogger(__name__)

USER_AGENT = "transferbench"


class TransferClient:
    """Async HTTP client for transfer measurements.

    Failures never raise: every measure_* call returns either a TransferResult
    or a TransferError describing the lost leg.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TransferClient:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    async def health_check(self, base_url: str) -> bool:
        """Check if a payload server is responding."""
        try:
            response = await self.client.get(f"{base_url.rstrip('/')}/health")
            return response.status_code == 200
        except httpx.RequestError as e:
            logger.debug(f"Health check failed for {base_url}: {e}")
            return False

    async def _fetch(self, label: str, url: str, headers: dict[str, str]):
        """GET url and return (response, raw body, duration_ms) without decoding."""
        with TimingContext(label, url=url) as timing:
            async with self.client.stream("GET", url, headers=headers) as response:
                chunks = [chunk async for chunk in response.aiter_raw()]
        record = timing.record
        logger.debug(f"{record.name}: GET {record.metadata['url']} took {record.duration_ms}ms")
        return response, b"".join(chunks), record.duration_ms

    async def measure_encoded(self, url: str, variant: EncodingVariant = EncodingVariant.ALL) -> TransferOutcome:
        """Fetch url advertising `variant` and account for both wire and decoded size."""
        label = encoded_label(variant)
        headers = {"Accept-Encoding": variant.accept_encoding, "Accept": "application/json"}

        try:
            response, body, duration_ms = await self._fetch(label, url, headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error measuring {label}: {e}")
            return TransferError(label, url, variant, "http_status", str(e))
        except httpx.RequestError as e:
            logger.error(f"Error measuring {label}: {e!r}")
            return TransferError(label, url, variant, "transport", str(e) or type(e).__name__)

        content_encoding = response.headers.get("content-encoding")
        uncompressed_size = decoded_size(body, content_encoding)

        logger.debug(
            f"{label}: {len(body)} bytes on the wire, {uncompressed_size} decoded "
            f"(Content-Encoding: {content_encoding or 'none'}) in {duration_ms}ms"
        )
        return TransferResult(
            label=label,
            transfer_size=len(body),
            uncompressed_size=uncompressed_size,
            duration_ms=duration_ms,
            content_length=response.headers.get("content-length"),
            content_encoding=content_encoding,
            content_type=response.headers.get("content-type"),
            encoding_variant=variant,
        )

    async def measure_archive(self, url: str) -> TransferOutcome:
        """Fetch a zip attachment; only its outer byte length is accounted."""
        label = ARCHIVE_LABEL
        variant = EncodingVariant.NONE
        headers = {"Accept": "application/zip"}

        try:
            response, body, duration_ms = await self._fetch(label, url, headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error measuring {label}: {e}")
            return TransferError(label, url, variant, "http_status", str(e))
        except httpx.RequestError as e:
            logger.error(f"Error measuring {label}: {e!r}")
            return TransferError(label, url, variant, "transport", str(e) or type(e).__name__)

        logger.debug(f"{label}: {len(body)} bytes in {duration_ms}ms")
        return TransferResult(
            label=label,
            transfer_size=len(body),
            duration_ms=duration_ms,
            content_length=response.headers.get("content-length"),
            content_encoding=response.headers.get("content-encoding") or "none",
            content_type=response.headers.get("content-type"),
            encoding_variant=variant,
        )


def decoded_size(body: bytes, content_encoding: str | None) -> int:
    """UTF-8 byte length of the body once its content-coding is undone.

    Unknown or absent codings count the body as already decoded. A body that
    fails to decode is logged and counted as-is.
    """
    decoder = get_decoder(content_encoding)
    if decoder is None:
        return len(body)

    try:
        decoded = decoder(body)
    except Exception as e:
        logger.warning(f"Decompression error ({content_encoding}): {e}")
        return len(body)

    # Payloads are JSON text; re-encode so malformed bytes are counted like text
    return len(decoded.decode("utf-8", errors="replace").encode("utf-8"))
