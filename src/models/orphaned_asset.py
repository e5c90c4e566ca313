"""OrphanedAssetRecord model for stale storage objects awaiting deletion."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from src.database import Base
from src.models.mixins import TimestampMixin


class OrphanedAssetRecord(Base, TimestampMixin):
    """A durable image no record references any more whose deletion failed."""

    __tablename__ = "orphaned_assets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    url = Column(String(2048), nullable=False, index=True)
    reason = Column(String(50), nullable=False)  # "replace" | "release"
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
