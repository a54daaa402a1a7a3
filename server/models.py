from sqlalchemy import Column, BigInteger, Integer, String, LargeBinary, ForeignKeyConstraint, UniqueConstraint, Index, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

S_IFDIR = 0o040000

ROOT_INO = 100
FIRST_INO = 200


class Tenant(Base):
    __tablename__ = 'tenants'

    token = Column(String(255), primary_key=True)
    root_ino = Column(BigInteger, nullable=False, default=ROOT_INO)
    next_ino = Column(BigInteger, nullable=False, default=FIRST_INO)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Inode(Base):
    __tablename__ = 'inodes'

    token = Column(String(255), primary_key=True)
    ino = Column(BigInteger, primary_key=True, autoincrement=False)
    mode = Column(Integer, nullable=False)
    nlink = Column(Integer, nullable=False, default=1)
    data_size = Column(BigInteger, nullable=False, default=0)

    @property
    def is_dir(self):
        return bool(self.mode & S_IFDIR)


class NameBinding(Base):
    """A directory entry: (parent_ino, name) -> ino within one tenant."""
    __tablename__ = 'name_bindings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(255), nullable=False)
    parent_ino = Column(BigInteger, nullable=False)
    name = Column(String(255), nullable=False)
    ino = Column(BigInteger, nullable=False)

    inode = relationship("Inode", lazy="joined")

    __table_args__ = (
        UniqueConstraint('token', 'parent_ino', 'name', name='_token_parent_name_uc'),
        ForeignKeyConstraint(['token', 'ino'], ['inodes.token', 'inodes.ino'], ondelete='CASCADE'),
        Index('ix_name_bindings_token_ino', 'token', 'ino'),
    )

    # Inode attributes, shared by every binding of the same ino
    @property
    def mode(self):
        return self.inode.mode

    @property
    def nlink(self):
        return self.inode.nlink

    @property
    def data_size(self):
        return self.inode.data_size


class Chunk(Base):
    __tablename__ = 'chunks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(255), nullable=False)
    ino = Column(BigInteger, nullable=False)
    offset = Column(BigInteger, nullable=False)
    size = Column(Integer, nullable=False)
    data = Column(LargeBinary, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(['token', 'ino'], ['inodes.token', 'inodes.ino'], ondelete='CASCADE'),
        Index('ix_chunks_token_ino_offset', 'token', 'ino', 'offset'),
    )

    @property
    def end(self):
        return self.offset + self.size
