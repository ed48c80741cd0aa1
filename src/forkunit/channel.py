"""Binary protocol carrying a test's checks from the child back to the parent.

Stream layout, one record per check in recording order::

    record  := MORE result comment
    MORE    := b"X"
    result  := struct "?"
    comment := b"\\0" | b"X" length payload b"\\0"
    stream  := record* b"\\0"

``length`` is the payload size as a native ``size_t`` (struct ``@N``).
"""

from __future__ import annotations

import io
import struct
from typing import BinaryIO, Iterable

from forkunit.errors import IncompleteTransferError
from forkunit.suite import Check

NON_NULL = b"X"
NULL = b"\0"

_RESULT = struct.Struct("?")
_LENGTH = struct.Struct("@N")

_ENCODING = "utf-8"
# surrogatepass lets every Python str survive the trip, lone surrogates included.
_ERRORS = "surrogatepass"

_CHUNK_SIZE = 64 * 1024

DecodedCheck = tuple[bool, str | None]


def write_results(checks: Iterable[Check], stream: BinaryIO) -> None:
    """Write checks to stream oldest first, followed by the end marker.

    Write errors propagate; the caller must not try to send anything else.
    """
    for check in checks:
        stream.write(NON_NULL)
        stream.write(_RESULT.pack(check.result))
        if check.comment is None:
            stream.write(NULL)
            continue
        payload = check.comment.encode(_ENCODING, _ERRORS)
        stream.write(NON_NULL)
        stream.write(_LENGTH.pack(len(payload)))
        stream.write(payload + NULL)

    stream.write(NULL)
    stream.flush()


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise IncompleteTransferError(f"stream ended after {got} of {size} bytes")
    return data


def _read_payload(stream: BinaryIO, size: int) -> bytes:
    """Read size bytes in bounded chunks so a corrupt length cannot force one huge read."""
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(min(remaining, _CHUNK_SIZE))
        if not chunk:
            raise IncompleteTransferError(
                f"stream ended after {size - remaining} of {size} payload bytes"
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_results(stream: BinaryIO) -> list[DecodedCheck]:
    """Read one complete result stream.

    Blocks until the end marker arrives. Raises IncompleteTransferError if
    the stream ends early or is malformed; partial results are never
    returned.
    """
    results: list[DecodedCheck] = []

    while _read_exact(stream, 1) != NULL:
        (result,) = _RESULT.unpack(_read_exact(stream, _RESULT.size))

        comment = None
        if _read_exact(stream, 1) != NULL:
            (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
            payload = _read_payload(stream, length + 1)
            if payload[-1:] != NULL:
                raise IncompleteTransferError("comment is missing its terminator")
            try:
                comment = payload[:-1].decode(_ENCODING, _ERRORS)
            except UnicodeDecodeError as e:
                raise IncompleteTransferError(f"comment is not valid text: {e}") from e

        results.append((result, comment))

    return results


def encode_results(checks: Iterable[Check]) -> bytes:
    buf = io.BytesIO()
    write_results(checks, buf)
    return buf.getvalue()


def decode_results(data: bytes) -> list[DecodedCheck]:
    return read_results(io.BytesIO(data))
