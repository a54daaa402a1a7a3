from fastapi import FastAPI, Depends, Query, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
import base64
import binascii
import errno
import logging
import struct
import time

import config
import fileio
import namespace
from database import get_db, transaction
from errors import VfsError
from logging_config import setup_logging

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="VTFS server")


def pack_int64(value):
    return struct.pack('>q', value)


def pack_uint64(value):
    return struct.pack('>Q', value)


def error_response(code: int):
    return Response(content=pack_int64(code), media_type="application/octet-stream")


def success_response(payload: bytes = b""):
    return Response(content=pack_int64(0) + payload, media_type="application/octet-stream")


def run(db: Session, op, *args, **kwargs):
    """Execute one operation in its own transaction and encode the outcome."""
    try:
        with transaction(db):
            return op(db, *args, **kwargs), 0
    except VfsError as exc:
        logger.debug(f"{op.__name__} failed: {exc.__class__.__name__}: {exc}")
        return None, exc.errno


def decode_data(data: str) -> bytes:
    # Query strings turn '+' into ' '; accept url-safe alphabet and missing padding too
    data = data.replace(' ', '+')
    return base64.b64decode(data + '=' * (-len(data) % 4), altchars=b'-_', validate=True)


def binding_line(binding) -> bytes:
    return f"{binding.ino},{binding.name},{binding.mode},{binding.data_size}\n".encode('utf-8')


def attr_line(inode) -> bytes:
    return f"{inode.ino},{inode.mode},{inode.nlink},{inode.data_size}\n".encode('utf-8')


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")
    return response


@app.get("/api/init")
async def init(token: str, db: Session = Depends(get_db)):
    tenant, code = run(db, namespace.ensure_tenant, token)
    if code:
        return error_response(code)
    return success_response(pack_uint64(tenant.root_ino))


@app.get("/api/list")
async def list_files(token: str, parent_ino: int, db: Session = Depends(get_db)):
    bindings, code = run(db, namespace.list_dir, token, parent_ino)
    if code:
        return error_response(code)
    return success_response(b"".join(binding_line(b) for b in bindings))


@app.get("/api/lookup")
async def lookup(token: str, parent_ino: int, name: str, db: Session = Depends(get_db)):
    binding, code = run(db, namespace.lookup, token, parent_ino, name)
    if code:
        return error_response(code)
    return success_response(attr_line(binding))


@app.get("/api/getattr")
async def get_attr(token: str, ino: int, db: Session = Depends(get_db)):
    inode, code = run(db, namespace.stat, token, ino)
    if code:
        return error_response(code)
    return success_response(attr_line(inode))


@app.get("/api/create")
async def create(token: str, parent_ino: int, name: str, mode: int, db: Session = Depends(get_db)):
    binding, code = run(db, namespace.create, token, parent_ino, name, mode)
    if code:
        return error_response(code)
    return success_response(f"{binding.ino},{binding.mode}\n".encode('utf-8'))


@app.get("/api/mkdir")
async def mkdir(token: str, parent_ino: int, name: str, mode: int, db: Session = Depends(get_db)):
    binding, code = run(db, namespace.mkdir, token, parent_ino, name, mode)
    if code:
        return error_response(code)
    return success_response(f"{binding.ino},{binding.mode}\n".encode('utf-8'))


@app.get("/api/read")
async def read(token: str, ino: int, offset: int = Query(..., ge=0), length: int = Query(..., ge=0),
               db: Session = Depends(get_db)):
    data, code = run(db, fileio.read, token, ino, offset, length)
    if code:
        return error_response(code)
    return success_response(data)


@app.get("/api/write")
async def write(token: str, ino: int, data: str, offset: int = Query(..., ge=0), db: Session = Depends(get_db)):
    try:
        decoded = decode_data(data)
    except (binascii.Error, ValueError):
        return error_response(errno.EINVAL)

    _, code = run(db, fileio.write, token, ino, offset, decoded)
    if code:
        return error_response(code)
    return success_response()


@app.get("/api/truncate")
async def truncate(token: str, ino: int, size: int = Query(..., ge=0), db: Session = Depends(get_db)):
    _, code = run(db, fileio.truncate, token, ino, size)
    if code:
        return error_response(code)
    return success_response()


@app.get("/api/delete")
async def delete(token: str, ino: int, db: Session = Depends(get_db)):
    _, code = run(db, namespace.delete, token, ino)
    if code:
        return error_response(code)
    return success_response()


@app.get("/api/rmdir")
async def rmdir(token: str, ino: int, db: Session = Depends(get_db)):
    _, code = run(db, namespace.rmdir, token, ino)
    if code:
        return error_response(code)
    return success_response()


@app.get("/api/link")
async def link(token: str, old_ino: int, parent_ino: int, name: str, db: Session = Depends(get_db)):
    binding, code = run(db, namespace.link, token, old_ino, parent_ino, name)
    if code:
        return error_response(code)
    return success_response(f"{binding.ino},{binding.nlink}\n".encode('utf-8'))


@app.get("/api/unlink")
async def unlink(token: str, ino: int, parent_ino: Optional[int] = None, name: Optional[str] = None,
                 db: Session = Depends(get_db)):
    _, code = run(db, namespace.unlink, token, ino, parent_ino=parent_ino, name=name)
    if code:
        return error_response(code)
    return success_response()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
