import errno


class VfsError(Exception):
    """Base class for failures returned to the transport.

    Each kind carries the errno the client expects in the response prefix.
    """
    errno = errno.EIO

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)


class NotFound(VfsError):
    errno = errno.ENOENT


class AlreadyExists(VfsError):
    errno = errno.EEXIST


class NotADirectory(VfsError):
    errno = errno.ENOTDIR


class IsADirectory(VfsError):
    errno = errno.EISDIR


class NotEmpty(VfsError):
    errno = errno.ENOTEMPTY


class Internal(VfsError):
    errno = errno.EIO
