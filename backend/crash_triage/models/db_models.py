"""
Crash Triage Engine - SQLAlchemy ORM Models

Three logical tables:
- crash_records: one row per ingested report, resolved later by the sweep
- signatures: externally authored catalog, only occurrence_count is written here
- release_statuses: shipping state of each fix version
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, Boolean, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class SignatureDB(Base):
    """Known crash signature. Catalog order is ascending id (insertion order)."""
    __tablename__ = "signatures"
    __table_args__ = (
        CheckConstraint("occurrence_count >= 0", name="ck_signatures_occurrence_count"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Literal substring searched for in the crash log
    pattern = Column(Text, nullable=False)

    # Version shipping the fix; empty or NULL means not fixed yet
    fix_version = Column(String(255), nullable=True, default="")

    # Versions this signature applies to, exact or LIKE-style (e.g. "1.2.%")
    affected_version_pattern = Column(String(255), nullable=False, default="")

    occurrence_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    crash_records = relationship("CrashRecordDB", back_populates="signature")


class CrashRecordDB(Base):
    """Persisted crash report. resolved is true iff signature_id is set."""
    __tablename__ = "crash_records"
    __table_args__ = (
        CheckConstraint("resolved = (signature_id IS NOT NULL)", name="ck_crash_records_resolved"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    contact = Column(Text, default="")
    app_version = Column(Text, nullable=False, index=True)
    crash_app_version = Column(String(255), default="")
    start_memory = Column(Text, default="")
    end_memory = Column(Text, default="")
    log_text = Column(Text, nullable=False)

    # Only ever flips false -> true
    resolved = Column(Boolean, nullable=False, default=False, index=True)
    signature_id = Column(Integer, ForeignKey("signatures.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    resolved_at = Column(DateTime, nullable=True)

    signature = relationship("SignatureDB", back_populates="crash_records")


class ReleaseStatusDB(Base):
    """Shipping status of a release version, keyed by version string."""
    __tablename__ = "release_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(String(255), nullable=False, unique=True, index=True)
    # 0 unfixed, 1 new signature, 2 pending review, 3 submitted for approval, 4 shipped
    status = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
