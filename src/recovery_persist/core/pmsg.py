"""Reader for files logged into the pstore pmsg ring buffer.

Recovery writes each of its log files to pmsg as a series of chunks. Every
chunk is one logger record::

    pmsg header   magic 'l' | len u16 | uid u16 | pid u16        (7 bytes)
    log header    id u8 | tid u16 | sec u32 | nsec u32            (11 bytes)
    payload       prio u8 | "<dir>:<file>" NUL | data

`len` covers the whole record. The chunk sequence number lives in `nsec`
(multiples of 1000, below 256000). A file is the concatenation of its chunks
in sequence order; a later chunk with the same sequence replaces an older one.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from pathlib import Path

import aiofiles

from .models import LogId, LogPriority, PmsgRecord

logger = logging.getLogger(__name__)

PMSG_MAGIC = b"l"
FILE_SEQUENCE = 1000
FILE_MAX_SEQUENCE = 256

_PMSG_HEADER = struct.Struct("<cHHH")
_LOG_HEADER = struct.Struct("<BHII")
_HEADERS_SIZE = _PMSG_HEADER.size + _LOG_HEADER.size
# prio byte plus at least the tag terminator
_MIN_RECORD = _HEADERS_SIZE + 2


@dataclass(frozen=True, slots=True)
class PmsgChunk:
    """One raw file fragment as found in the buffer."""

    log_id: int
    priority: int
    tag: str  # "<dir>:<file>"
    sequence: int
    data: bytes

    @property
    def filename(self) -> str:
        return self.tag.replace(":", "/", 1)


def _valid_tag(tag: bytes) -> bool:
    """Printable, no whitespace, exactly one ':' separator."""
    if not tag or tag.count(b":") != 1:
        return False
    return all(0x21 <= c <= 0x7E for c in tag)


def _parse_payload(log_id: int, nsec: int, payload: bytes) -> PmsgChunk | None:
    if nsec % FILE_SEQUENCE or nsec // FILE_SEQUENCE >= FILE_MAX_SEQUENCE:
        return None

    prio = payload[0]
    nul = payload.find(b"\0", 1)
    if nul < 0:
        return None
    tag = payload[1:nul]
    if not _valid_tag(tag):
        return None

    return PmsgChunk(
        log_id=log_id,
        priority=prio,
        tag=tag.decode("ascii"),
        sequence=nsec // FILE_SEQUENCE,
        data=payload[nul + 1 :],
    )


def iter_chunks(buf: bytes) -> Iterator[PmsgChunk]:
    """Yield well-formed file chunks in buffer order, resyncing past corruption."""
    offset = 0
    end = len(buf)
    while offset + _HEADERS_SIZE <= end:
        magic, length, _uid, _pid = _PMSG_HEADER.unpack_from(buf, offset)
        if magic != PMSG_MAGIC or length < _MIN_RECORD or offset + length > end:
            nxt = buf.find(PMSG_MAGIC, offset + 1)
            logger.debug("Skipping corrupt pmsg data at offset %d", offset)
            if nxt < 0:
                return
            offset = nxt
            continue

        log_id, _tid, _sec, nsec = _LOG_HEADER.unpack_from(buf, offset + _PMSG_HEADER.size)
        payload = buf[offset + _HEADERS_SIZE : offset + length]
        offset += length

        chunk = _parse_payload(log_id, nsec, payload)
        if chunk is not None:
            yield chunk


def _prefix_matches(filename: str, prefix: str) -> bool:
    # ':' is accepted as a synonym for '/'
    return filename.startswith(prefix.replace(":", "/"))


def assemble_records(
    chunks: Iterator[PmsgChunk],
    *,
    log_id: LogId = LogId.SYSTEM,
    min_priority: LogPriority = LogPriority.INFO,
    prefix: str = "",
) -> list[PmsgRecord]:
    """Group matching chunks into whole files, ordered by first appearance."""
    files: dict[tuple[int, int, str], dict[int, bytes]] = {}
    for chunk in chunks:
        if chunk.log_id != log_id:
            continue
        if chunk.priority < min_priority or chunk.priority > LogPriority.SILENT:
            continue
        if prefix and not _prefix_matches(chunk.filename, prefix):
            continue
        key = (chunk.log_id, chunk.priority, chunk.filename)
        files.setdefault(key, {})[chunk.sequence] = chunk.data

    records: list[PmsgRecord] = []
    for (lid, prio, filename), parts in files.items():
        records.append(
            PmsgRecord(
                log_id=LogId(lid),
                priority=LogPriority(prio),
                filename=filename,
                payload=b"".join(parts[seq] for seq in sorted(parts)),
            )
        )
    return records


async def iter_pmsg_records(
    path: str | Path,
    *,
    log_id: LogId = LogId.SYSTEM,
    min_priority: LogPriority = LogPriority.INFO,
    prefix: str = "",
) -> AsyncIterator[PmsgRecord]:
    """Yield every file stored in the pmsg dump at `path`, oldest first.

    A missing or unreadable dump yields nothing.
    """
    try:
        async with aiofiles.open(path, "rb") as f:
            buf = await f.read()
    except OSError as e:
        logger.error("Failed to read %s: %s", path, e)
        return

    records = assemble_records(
        iter_chunks(buf),
        log_id=log_id,
        min_priority=min_priority,
        prefix=prefix,
    )
    logger.debug("Found %d file(s) in %s", len(records), path)
    for record in records:
        yield record
