import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from sharein.core.database import Base, utcnow

FILE_TYPES = ("docs", "sheets", "media", "other")


class File(Base):
    __tablename__ = "files"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, index=True)
    file_url = Column(String, nullable=False)
    bucket = Column(String, nullable=False)
    object_name = Column(String, nullable=False)
    preview_image = Column(String, nullable=True)
    preview_object_name = Column(String, nullable=True)
    content_type = Column(String, nullable=True)
    size = Column(Integer, nullable=True)
    type = Column(String(16), nullable=False, default="other", index=True)
    # Owner id, held as a weak reference without a foreign key.
    creator = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    scheduled_delete_date = Column(DateTime, nullable=True, index=True)

    grants = relationship("FileGrant", back_populates="file", cascade="all, delete-orphan", lazy="selectin")
    invites = relationship("FileInvite", back_populates="file", cascade="all, delete-orphan", lazy="selectin")

    @property
    def access(self) -> list[str]:
        return [g.user_id for g in self.grants]

    @property
    def pending_invites(self) -> list[str]:
        return [i.email for i in self.invites]

    def is_owner(self, user_id: str) -> bool:
        return self.creator == user_id

    def can_read(self, user_id: str) -> bool:
        return self.is_owner(user_id) or user_id in self.access


class FileGrant(Base):
    __tablename__ = "file_grants"
    __table_args__ = (UniqueConstraint("file_id", "user_id", name="uq_file_grants_file_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    file = relationship("File", back_populates="grants")


class FileInvite(Base):
    __tablename__ = "file_invites"
    __table_args__ = (UniqueConstraint("file_id", "email", name="uq_file_invites_file_email"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    file = relationship("File", back_populates="invites")
