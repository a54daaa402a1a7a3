"""
Shared helpers for the VTFS tests.
"""

import base64
import struct

from database import transaction


TOKEN = "tenant-a"
OTHER_TOKEN = "tenant-b"

FILE_MODE = 0o100644
DIR_MODE = 0o040755


def op(db, fn, *args, **kwargs):
    """Run a service call the way a request does: one transaction per call."""
    with transaction(db):
        return fn(db, *args, **kwargs)


def unpack(response):
    """Split a wire response into (error code, payload)."""
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/octet-stream"
    code = struct.unpack('>q', response.content[:8])[0]
    return code, response.content[8:]


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')
