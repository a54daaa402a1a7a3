"""
Chunk store: byte runs keyed by (token, ino, offset).

Knows nothing about files or directories; callers decide what the runs mean.
"""

from sqlalchemy import and_

from models import Chunk


def overlapping(db, token: str, ino: int, start: int, end: int):
    """Chunks intersecting [start, end), in ascending offset order."""
    return db.query(Chunk).filter(and_(
        Chunk.token == token,
        Chunk.ino == ino,
        Chunk.offset < end,
        Chunk.offset + Chunk.size > start,
    )).order_by(Chunk.offset).all()


def put(db, token: str, ino: int, offset: int, data: bytes) -> Chunk:
    chunk = Chunk(token=token, ino=ino, offset=offset, size=len(data), data=bytes(data))
    db.add(chunk)
    return chunk


def remove(db, chunk: Chunk):
    db.delete(chunk)


def drop_all(db, token: str, ino: int) -> int:
    return db.query(Chunk).filter(and_(Chunk.token == token, Chunk.ino == ino)).delete(synchronize_session=False)


def drop_from(db, token: str, ino: int, offset: int) -> int:
    """Delete every chunk starting at or after offset."""
    return db.query(Chunk).filter(and_(
        Chunk.token == token,
        Chunk.ino == ino,
        Chunk.offset >= offset,
    )).delete(synchronize_session=False)
