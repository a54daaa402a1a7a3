"""
Namespace and link management.

Directory entries (NameBinding) point at inodes; an inode's mode, size and
link count live on the Inode row only, so every hard link sees the same values
without any copying between rows.
"""

import logging
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError

import chunk_store
from allocator import allocate
from errors import AlreadyExists, IsADirectory, NotADirectory, NotEmpty, NotFound
from models import Inode, NameBinding, Tenant, ROOT_INO, FIRST_INO, S_IFDIR

logger = logging.getLogger(__name__)


def ensure_tenant(db, token: str) -> Tenant:
    """Return the tenant row, provisioning it and its root inode on first use."""
    tenant = db.query(Tenant).filter(Tenant.token == token).first()
    if tenant:
        return tenant

    try:
        with db.begin_nested():
            tenant = Tenant(token=token, root_ino=ROOT_INO, next_ino=FIRST_INO)
            db.add(tenant)
            db.add(Inode(token=token, ino=ROOT_INO, mode=S_IFDIR | 0o777, nlink=2, data_size=0))
    except IntegrityError:
        # Provisioned concurrently by another request
        return db.query(Tenant).filter(Tenant.token == token).one()

    logger.info(f"Provisioned tenant {token!r} with root inode {ROOT_INO}")
    return tenant


def get_inode(db, token: str, ino: int) -> Optional[Inode]:
    return db.query(Inode).filter(and_(Inode.token == token, Inode.ino == ino)).first()


def _find_binding(db, token: str, parent_ino: int, name: str) -> Optional[NameBinding]:
    return db.query(NameBinding).filter(and_(
        NameBinding.token == token,
        NameBinding.parent_ino == parent_ino,
        NameBinding.name == name,
    )).first()


def _bindings_of(db, token: str, ino: int) -> List[NameBinding]:
    return db.query(NameBinding).filter(and_(
        NameBinding.token == token,
        NameBinding.ino == ino,
    )).order_by(NameBinding.parent_ino, NameBinding.name).all()


def _has_children(db, token: str, ino: int) -> bool:
    return db.query(NameBinding.id).filter(and_(
        NameBinding.token == token,
        NameBinding.parent_ino == ino,
    )).first() is not None


def _check_target(db, token: str, parent_ino: int, name: str):
    parent = get_inode(db, token, parent_ino)
    if not parent:
        raise NotFound(f"parent {parent_ino} does not exist")
    if not parent.is_dir:
        raise NotADirectory(f"parent {parent_ino} is not a directory")
    if _find_binding(db, token, parent_ino, name):
        raise AlreadyExists(f"{name!r} already exists in {parent_ino}")


def list_dir(db, token: str, parent_ino: int) -> List[NameBinding]:
    ensure_tenant(db, token)
    return db.query(NameBinding).filter(and_(
        NameBinding.token == token,
        NameBinding.parent_ino == parent_ino,
    )).order_by(NameBinding.name).all()


def lookup(db, token: str, parent_ino: int, name: str) -> NameBinding:
    ensure_tenant(db, token)
    binding = _find_binding(db, token, parent_ino, name)
    if not binding:
        raise NotFound(f"{name!r} not found in {parent_ino}")
    return binding


def stat(db, token: str, ino: int) -> Inode:
    ensure_tenant(db, token)
    inode = get_inode(db, token, ino)
    if not inode:
        raise NotFound(f"inode {ino} not found")
    return inode


def create(db, token: str, parent_ino: int, name: str, mode: int) -> NameBinding:
    ensure_tenant(db, token)
    _check_target(db, token, parent_ino, name)

    ino = allocate(db, token)
    inode = Inode(token=token, ino=ino, mode=mode, nlink=1, data_size=0)
    binding = NameBinding(token=token, parent_ino=parent_ino, name=name, ino=ino, inode=inode)
    db.add(inode)
    db.add(binding)
    db.flush()

    logger.debug(f"[{token}] created {name!r} in {parent_ino} as ino {ino} mode {mode:o}")
    return binding


def mkdir(db, token: str, parent_ino: int, name: str, mode: int) -> NameBinding:
    return create(db, token, parent_ino, name, (mode & 0o777) | S_IFDIR)


def delete(db, token: str, ino: int) -> bool:
    """Remove an inode together with every name bound to it.

    Backs both delete and rmdir: all hard links go at once, and a regular
    file's content goes with them.
    """
    ensure_tenant(db, token)
    bindings = _bindings_of(db, token, ino)
    if not bindings:
        raise NotFound(f"inode {ino} not found")

    inode = bindings[0].inode
    if inode.is_dir and _has_children(db, token, ino):
        raise NotEmpty(f"directory {ino} is not empty")

    for binding in bindings:
        db.delete(binding)
    db.flush()
    if not inode.is_dir:
        chunk_store.drop_all(db, token, ino)
    db.delete(inode)
    db.flush()

    logger.debug(f"[{token}] deleted ino {ino} ({len(bindings)} names)")
    return True


def rmdir(db, token: str, ino: int) -> bool:
    ensure_tenant(db, token)
    inode = get_inode(db, token, ino)
    if inode and not inode.is_dir:
        raise NotADirectory(f"inode {ino} is not a directory")
    return delete(db, token, ino)


def link(db, token: str, old_ino: int, parent_ino: int, name: str) -> NameBinding:
    ensure_tenant(db, token)
    inode = get_inode(db, token, old_ino)
    if not inode:
        raise NotFound(f"inode {old_ino} not found")
    if inode.is_dir:
        raise IsADirectory(f"cannot hard link directory {old_ino}")
    _check_target(db, token, parent_ino, name)

    inode.nlink += 1
    binding = NameBinding(token=token, parent_ino=parent_ino, name=name, ino=old_ino, inode=inode)
    db.add(binding)
    db.flush()

    logger.debug(f"[{token}] linked ino {old_ino} as {name!r} in {parent_ino}, nlink {inode.nlink}")
    return binding


def unlink(db, token: str, ino: int, parent_ino: Optional[int] = None, name: Optional[str] = None) -> bool:
    """Remove one name of an inode.

    Without parent_ino/name the first binding by (parent_ino, name) is removed.
    Content is freed once the last name is gone.
    """
    ensure_tenant(db, token)
    bindings = _bindings_of(db, token, ino)
    if not bindings:
        raise NotFound(f"inode {ino} not found")

    if parent_ino is not None and name is not None:
        target = next((b for b in bindings if b.parent_ino == parent_ino and b.name == name), None)
        if target is None:
            raise NotFound(f"{name!r} in {parent_ino} does not refer to inode {ino}")
    else:
        target = bindings[0]

    inode = target.inode
    if inode.is_dir:
        raise IsADirectory(f"inode {ino} is a directory")

    removed = (target.parent_ino, target.name)
    db.delete(target)
    inode.nlink -= 1
    db.flush()

    if inode.nlink <= 0:
        chunk_store.drop_all(db, token, ino)
        db.delete(inode)
        db.flush()
        logger.debug(f"[{token}] unlinked last name of ino {ino}, content freed")
    else:
        logger.debug(f"[{token}] unlinked {removed[1]!r} from {removed[0]}, nlink {inode.nlink}")
    return True
