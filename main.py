"""
Payload servers for the transfer benchmark.

encoded_app serves the JSON document with negotiated HTTP content-encoding,
archive_app serves the same document inside a zip attachment.

    python main.py encoded --port 3001
    python main.py archive --port 3002
"""
import argparse
import io
import logging
import zipfile

import fastapi
import uvicorn
from fastapi import Request, Response

from payloads import generate_sample_data, serialize
from transferbench.config import ARCHIVE_PORT, ENCODED_PORT, parse_size
from transferbench.encoding import compress_body, negotiate_encoding

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ZIP_COMPRESSION_LEVEL = 9

encoded_app = fastapi.FastAPI(title="Compression server")
archive_app = fastapi.FastAPI(title="Manual zip server")


def _encoded_response(raw_size: str | None, request: Request) -> Response:
    size = parse_size(raw_size)
    body = serialize(generate_sample_data(size))
    accept_encoding = request.headers.get("accept-encoding")
    logger.info(f"Generating sample data with {size} records (uncompressed size: {len(body)} bytes)")
    logger.info(f"Client Accept-Encoding: {accept_encoding or 'none'}")

    encoding = negotiate_encoding(accept_encoding)
    headers = {"Vary": "Accept-Encoding"}
    if encoding != "identity":
        body = compress_body(body, encoding)
        headers["Content-Encoding"] = encoding
    return Response(content=body, media_type="application/json", headers=headers)


@encoded_app.get("/data")
async def encoded_default(request: Request):
    return _encoded_response(None, request)


@encoded_app.get("/data/{size}")
async def encoded_data(size: str, request: Request):
    return _encoded_response(size, request)


@encoded_app.get("/health")
async def encoded_health():
    return {"status": "ok", "compression": "enabled"}


def build_archive(document: bytes, name: str = "data.json") -> bytes:
    """Pack a document into a single-entry zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(
        buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=ZIP_COMPRESSION_LEVEL
    ) as archive:
        archive.writestr(name, document)
    return buffer.getvalue()


def _archive_response(raw_size: str | None) -> Response:
    size = parse_size(raw_size)
    document = serialize(generate_sample_data(size), pretty=True)
    logger.info(f"Generating sample data with {size} records (uncompressed size: {len(document)} bytes)")

    return Response(
        content=build_archive(document),
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="data.zip"'},
    )


@archive_app.get("/data")
async def archive_default():
    return _archive_response(None)


@archive_app.get("/data/{size}")
async def archive_data(size: str):
    return _archive_response(size)


@archive_app.get("/health")
async def archive_health():
    return {"status": "ok", "compression": "manual-zip"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a benchmark payload server")
    parser.add_argument("server", choices=["encoded", "archive"])
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    if args.server == "encoded":
        uvicorn.run(encoded_app, host=args.host, port=args.port or ENCODED_PORT)
    else:
        uvicorn.run(archive_app, host=args.host, port=args.port or ARCHIVE_PORT)
