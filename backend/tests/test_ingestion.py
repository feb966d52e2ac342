"""
End-to-end tests for crash submission ingestion.

Flow: xmlstring -> parse -> validate -> triage -> persist -> result code,
against an in-memory SQLite catalog.
"""
from unittest.mock import patch

from crash_triage.models import RemediationStatus
from crash_triage.models.db_models import CrashRecordDB, SignatureDB
from crash_triage.services.catalog import SignatureCatalog
from crash_triage.services.errors import StorageError
from crash_triage.services.triage import (
    CrashIngestionService,
    TriageEffects,
    render_result,
    submit_crash_report,
)


class TestSubmission:
    """Tests for CrashIngestionService.submit()."""

    def test_known_signature_with_shipped_fix(
        self, db_session, add_signature, add_release_status, make_crashlog
    ):
        signature = add_signature("0x000b0419", "1.2.2.1", fix_version="1.3.0")
        add_release_status("1.3.0", 4)

        outcome = CrashIngestionService(db_session).submit(make_crashlog())

        assert outcome.code == 4
        assert outcome.status == RemediationStatus.FIX_SHIPPED
        assert not outcome.rejected

        db_session.refresh(signature)
        assert signature.occurrence_count == 1

        records = db_session.query(CrashRecordDB).all()
        assert len(records) == 1
        assert records[0].id == outcome.record_ids[0]
        assert records[0].resolved is True
        assert records[0].signature_id == signature.id
        assert records[0].resolved_at is not None
        assert records[0].contact == "no contact"
        assert records[0].start_memory == "10000"

    def test_repeat_submissions_count_each_occurrence(
        self, db_session, add_signature, make_crashlog
    ):
        signature = add_signature("0x000b0419", "1.2.1, 1.2.2.1")

        service = CrashIngestionService(db_session)
        service.submit(make_crashlog())
        service.submit(make_crashlog())

        db_session.refresh(signature)
        assert signature.occurrence_count == 2

    def test_fix_equal_to_affected_ignores_release_table(
        self, db_session, add_signature, add_release_status, make_crashlog
    ):
        add_signature("boom", "1.0", fix_version="1.0")
        add_release_status("1.0", 4)

        outcome = submit_crash_report(
            db_session, make_crashlog(log="boom", version="1.0", crashappversion="1.0")
        )

        assert outcome.code == 2

    def test_unmatched_report_is_stored_unresolved(
        self, db_session, add_signature, make_crashlog
    ):
        signature = add_signature("0xdeadbeef", "1.2.2.1")

        outcome = submit_crash_report(db_session, make_crashlog(log="0x000b0419"))

        assert outcome.code == 0
        assert outcome.status == RemediationStatus.UNKNOWN
        record = db_session.query(CrashRecordDB).one()
        assert record.resolved is False
        assert record.signature_id is None
        db_session.refresh(signature)
        assert signature.occurrence_count == 0

    def test_signature_for_other_version_does_not_match(
        self, db_session, add_signature, make_crashlog
    ):
        add_signature("0x000b0419", "2.0")

        outcome = submit_crash_report(db_session, make_crashlog())

        assert outcome.code == 0
        assert db_session.query(CrashRecordDB).one().resolved is False

    def test_memory_warning_is_stored_but_never_matched(
        self, db_session, add_signature, make_crashlog
    ):
        signature = add_signature("Memory", "1.2.2.1", fix_version="1.3.0")

        outcome = submit_crash_report(db_session, make_crashlog(log="Memory Warning!"))

        assert outcome.code == 0
        assert outcome.status == RemediationStatus.MEMORY_PRESSURE
        record = db_session.query(CrashRecordDB).one()
        assert record.resolved is False
        db_session.refresh(signature)
        assert signature.occurrence_count == 0

    def test_missing_crash_app_version_matches_any_signature(
        self, db_session, add_signature, add_release_status, make_crashlog
    ):
        signature = add_signature("boom", "1.2.2.1", fix_version="1.3.0")
        add_release_status("1.3.0", 4)

        outcome = submit_crash_report(
            db_session, make_crashlog(log="boom", crashappversion="")
        )

        assert outcome.code == 4
        record = db_session.query(CrashRecordDB).one()
        assert record.signature_id == signature.id

    def test_empty_log_creates_no_record(self, db_session, make_crashlog):
        outcome = submit_crash_report(db_session, make_crashlog(log=""))

        assert outcome.code == 0
        assert outcome.record_ids == []
        assert db_session.query(CrashRecordDB).count() == 0


class TestRejection:
    """Every rejection path answers with code 0 and writes nothing."""

    def test_empty_submission(self, db_session):
        for xmlstring in (None, "", "   "):
            outcome = submit_crash_report(db_session, xmlstring)
            assert outcome.code == 0
            assert outcome.rejected

    def test_malformed_markup(self, db_session):
        outcome = submit_crash_report(db_session, "<crashlog><version>1.0</crashlog>")

        assert outcome.code == 0
        assert outcome.rejected
        assert db_session.query(CrashRecordDB).count() == 0

    def test_invalid_crash_app_version_never_reaches_catalog(
        self, db_session, add_signature, make_crashlog
    ):
        add_signature("0x000b0419", "1.2.3<script>")

        with patch.object(SignatureCatalog, "find_candidates") as find_candidates:
            outcome = submit_crash_report(
                db_session, make_crashlog(crashappversion="1.2.3&lt;script&gt;")
            )

        assert outcome.code == 0
        assert outcome.rejected
        find_candidates.assert_not_called()
        assert db_session.query(CrashRecordDB).count() == 0
        assert db_session.query(SignatureDB).one().occurrence_count == 0

    def test_storage_failure_is_rejected(self, db_session, add_signature, make_crashlog):
        add_signature("0x000b0419", "1.2.2.1")

        with patch.object(TriageEffects, "record_submission", side_effect=StorageError("down")):
            outcome = submit_crash_report(db_session, make_crashlog())

        assert outcome.code == 0
        assert outcome.rejected

    def test_catalog_failure_is_rejected(self, db_session, make_crashlog):
        with patch.object(SignatureCatalog, "find_candidates", side_effect=StorageError("down")):
            outcome = submit_crash_report(db_session, make_crashlog())

        assert outcome.code == 0
        assert outcome.rejected
        assert db_session.query(CrashRecordDB).count() == 0


class TestRenderResult:
    """Tests for the client response document."""

    def test_render_result(self):
        assert render_result(4) == '<?xml version="1.0" encoding="UTF-8"?>\n<result>4</result>\n'

    def test_render_result_rejected(self):
        assert "<result>0</result>" in render_result(0)
