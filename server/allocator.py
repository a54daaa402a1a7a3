from models import Tenant


def allocate(db, token: str) -> int:
    """Hand out the next inode number for a tenant.

    The counter lives on the tenant row and is bumped under a row lock inside
    the caller's transaction, so concurrent creates never share a number.
    """
    tenant = db.query(Tenant).filter(Tenant.token == token).with_for_update().one()
    ino = tenant.next_ino
    tenant.next_ino = ino + 1
    db.flush()
    return ino
