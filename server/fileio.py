"""
File content I/O.

Content is a set of non-overlapping chunks per inode. Bytes inside
data_size that no chunk covers read back as zeros.
"""

import logging

import chunk_store
import config
from errors import IsADirectory, NotFound
from models import Inode
from namespace import ensure_tenant, get_inode

logger = logging.getLogger(__name__)


def _file_inode(db, token: str, ino: int) -> Inode:
    ensure_tenant(db, token)
    inode = get_inode(db, token, ino)
    if not inode:
        raise NotFound(f"inode {ino} not found")
    if inode.is_dir:
        raise IsADirectory(f"inode {ino} is a directory")
    return inode


def read(db, token: str, ino: int, offset: int, length: int) -> bytes:
    inode = _file_inode(db, token, ino)
    if offset >= inode.data_size or length <= 0:
        return b""

    end = min(offset + length, inode.data_size)
    buf = bytearray(end - offset)
    for chunk in chunk_store.overlapping(db, token, ino, offset, end):
        start = max(chunk.offset, offset)
        stop = min(chunk.end, end)
        buf[start - offset:stop - offset] = chunk.data[start - chunk.offset:stop - chunk.offset]
    return bytes(buf)


def write(db, token: str, ino: int, offset: int, data: bytes) -> bool:
    """Store data at offset, replacing every chunk it touches.

    Intersecting chunks are removed whole, including any part that lies
    outside the written range, unless PRESERVE_PARTIAL_OVERLAP is set, in
    which case their head and tail survive as separate chunks.
    """
    inode = _file_inode(db, token, ino)
    if not data:
        return True

    write_end = offset + len(data)
    for chunk in chunk_store.overlapping(db, token, ino, offset, write_end):
        if config.PRESERVE_PARTIAL_OVERLAP:
            if chunk.offset < offset:
                chunk_store.put(db, token, ino, chunk.offset, chunk.data[:offset - chunk.offset])
            if chunk.end > write_end:
                chunk_store.put(db, token, ino, write_end, chunk.data[write_end - chunk.offset:])
        chunk_store.remove(db, chunk)

    chunk_store.put(db, token, ino, offset, data)
    inode.data_size = max(inode.data_size, write_end)
    db.flush()

    logger.debug(f"[{token}] wrote {len(data)} bytes to ino {ino} at {offset}, size {inode.data_size}")
    return True


def truncate(db, token: str, ino: int, size: int) -> bool:
    inode = _file_inode(db, token, ino)

    if size < inode.data_size:
        chunk_store.drop_from(db, token, ino, size)
        for chunk in chunk_store.overlapping(db, token, ino, size, inode.data_size):
            # Only a chunk straddling the new end can remain
            tail = chunk.data[:size - chunk.offset]
            chunk_store.remove(db, chunk)
            chunk_store.put(db, token, ino, chunk.offset, tail)

    inode.data_size = size
    db.flush()

    logger.debug(f"[{token}] truncated ino {ino} to {size}")
    return True
