"""
Signature Catalog

Read-only view over the signatures and release_statuses tables, shared by
live triage and the reconciliation sweep. Every call goes to the database:
the sweep exists to pick up signatures added after a report arrived, so
nothing here is cached.
"""
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import SignatureDB, ReleaseStatusDB
from ..errors import StorageError

logger = logging.getLogger(__name__)


class SignatureCatalog:
    """
    Catalog queries. Results are always in catalog order (ascending id).

    Usage:
        catalog = SignatureCatalog(db)
        candidates = catalog.find_candidates("1.2.2.1")
    """

    def __init__(self, db: Session):
        self.db = db

    def find_candidates(self, crash_app_version: str) -> List[SignatureDB]:
        """
        Signatures whose affected_version_pattern contains crash_app_version.

        An empty version is a substring of every pattern and so matches the
        whole catalog.

        Raises:
            StorageError: Catalog read failed
        """
        try:
            return self.db.query(SignatureDB).filter(
                SignatureDB.affected_version_pattern.contains(crash_app_version, autoescape=True)
            ).order_by(SignatureDB.id).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Signature candidate lookup failed: {e}")
            raise StorageError("Signature catalog read failed") from e

    def release_status(self, version: str) -> Optional[int]:
        """
        Status code recorded for a release version, None if not registered.

        If duplicate rows exist for a version the last inserted one wins.

        Raises:
            StorageError: Release status read failed
        """
        try:
            row = self.db.query(ReleaseStatusDB).filter(
                ReleaseStatusDB.version == version
            ).order_by(ReleaseStatusDB.id.desc()).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Release status lookup failed for {version!r}: {e}")
            raise StorageError("Release status read failed") from e

        return row.status if row is not None else None

    def list_signatures(self) -> List[SignatureDB]:
        """Whole catalog in catalog order."""
        try:
            return self.db.query(SignatureDB).order_by(SignatureDB.id).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Signature listing failed: {e}")
            raise StorageError("Signature catalog read failed") from e

    def top_signatures(self, limit: int = 50) -> List[SignatureDB]:
        """Most frequent signatures first, ties in catalog order."""
        try:
            return self.db.query(SignatureDB).order_by(
                SignatureDB.occurrence_count.desc(), SignatureDB.id
            ).limit(limit).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Signature ranking failed: {e}")
            raise StorageError("Signature catalog read failed") from e
