"""Shared pytest fixtures for the crash triage test suite."""
import os

# Point the application engine at SQLite before crash_triage.database is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crash_triage.database import Base
from crash_triage.models.db_models import CrashRecordDB, SignatureDB, ReleaseStatusDB


@pytest.fixture
def db_session():
    """In-memory SQLite session with all triage tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def add_signature(db_session):
    """Factory inserting a catalog signature."""
    def _add(pattern, affected_version_pattern, fix_version="", occurrence_count=0):
        signature = SignatureDB(
            pattern=pattern,
            affected_version_pattern=affected_version_pattern,
            fix_version=fix_version,
            occurrence_count=occurrence_count,
        )
        db_session.add(signature)
        db_session.commit()
        return signature
    return _add


@pytest.fixture
def add_release_status(db_session):
    """Factory registering the shipping status of a version."""
    def _add(version, status):
        row = ReleaseStatusDB(version=version, status=status)
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture
def add_crash_record(db_session):
    """Factory inserting an unresolved backlog record."""
    def _add(log_text, app_version="1.2.2.1", crash_app_version=None):
        record = CrashRecordDB(
            contact="",
            app_version=app_version,
            crash_app_version=crash_app_version if crash_app_version is not None else app_version,
            start_memory="",
            end_memory="",
            log_text=log_text,
            resolved=False,
            signature_id=None,
        )
        db_session.add(record)
        db_session.commit()
        return record
    return _add


def crashlog_xml(
    log="0x000b0419 0x1000 + 717849",
    version="1.2.2.1",
    crashappversion="1.2.2.1",
    contact="no contact",
    startmemory="10000",
    endmemory="5000",
):
    """Build a client submission the way the crash reporter renders it."""
    return (
        "<crashlog>"
        f"<version>{version}</version>"
        f"<crashappversion>{crashappversion}</crashappversion>"
        f"<startmemory>{startmemory}</startmemory>"
        f"<endmemory>{endmemory}</endmemory>"
        f"<contact>{contact}</contact>"
        f"<log><![CDATA[{log}]]></log>"
        "</crashlog>"
    )


@pytest.fixture
def make_crashlog():
    """Factory building crash report submissions."""
    return crashlog_xml
