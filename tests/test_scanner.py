"""
Tests for gazette scan reconciliation.
"""

import datetime
import os
from unittest.mock import MagicMock, patch

import pytest

from gazettex.directory import InMemoryRecordDirectory, InMemoryScanStore
from gazettex.model import (
    ErrorKind,
    InputMissingError,
    ParseError,
    ParseTimeoutError,
    PersistenceError,
    ScanState,
)
from gazettex.scanner import Reconciliation, build_scan_log, reconcile_text, scan_gazette

EXAMPLE_TEXT = (
    "Vol. A No. 45 ... 12th March, 2024 ... IN THE HIGH COURT OF KENYA AT NAIROBI "
    "CAUSE NO. 123/2024 ... estate of MARY ATIENO, deceased ..."
)


def test_reconcile_text(sectioned_text, courts, records, store):
    """Test a full reconciliation over a sectioned gazette."""
    result = reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store)

    gazette = result.gazette
    assert gazette["volume_no"] == "CXXVI—No. 45"
    assert gazette["date_published"] == datetime.date(2024, 3, 12)
    assert gazette["total_records"] == 3
    assert gazette["published_count"] == 2
    assert gazette["uploaded_by"] == "user-1"
    assert [c["cause_no"] for c in gazette["cases"]] == ["123/2024", "124/2024", "77/2024"]
    assert [c["court_station_id"] for c in gazette["cases"]] == ["court-1", "court-1", "court-2"]
    assert [c["record_id"] for c in gazette["cases"]] == ["rec-1", None, "rec-2"]
    assert all(c["status"] == "Published" for c in gazette["cases"])

    # Only the pending record was written
    assert [r["id"] for r in result.updated_records] == ["rec-1"]
    assert records.get("rec-1")["status_at_gp"] == "Published"
    assert records.get("rec-1")["volume_no"] == "CXXVI—No. 45"
    assert records.get("rec-1")["date_published"] == datetime.date(2024, 3, 12)
    assert records.get("rec-2")["volume_no"] == "CXXV—No. 10"
    assert records.get("rec-3")["status_at_gp"] == "Pending"


def test_reconcile_text_persists_gazette_and_log(sectioned_text, courts, records, store):
    """Test that one gazette and one scan log are written."""
    result = reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store)

    assert len(store.gazettes) == 1
    assert len(store.scan_logs) == 1
    assert result.gazette["id"] == store.gazettes[0]["id"]

    log = store.scan_logs[0]
    assert log["file_name"] == "gazette.pdf"
    assert log["total_records"] == 3
    assert log["published_count"] == 2
    assert log["uploaded_by"] == "user-1"
    assert log["remarks"] == "Gazette gazette.pdf scanned successfully."
    assert log["volume_no"] == "CXXVI—No. 45"
    assert isinstance(log["date_scanned"], datetime.datetime)


def test_reconcile_text_example(courts, store):
    """Test the short single-case gazette against an empty and a matching directory."""
    result = reconcile_text(EXAMPLE_TEXT, "g.pdf", "user-1", courts, InMemoryRecordDirectory(), store)

    gazette = result.gazette
    assert gazette["volume_no"] == "A No. 45"
    assert gazette["date_published"] == datetime.date(2024, 3, 12)
    assert gazette["total_records"] == 1
    assert gazette["published_count"] == 0
    assert gazette["cases"][0]["cause_no"] == "123/2024"
    assert gazette["cases"][0]["name_of_deceased"] == "mary atieno"
    assert gazette["cases"][0]["court_name"] == "NAIROBI"

    directory = InMemoryRecordDirectory([{"id": "r1", "name_of_deceased": "MARY ATIENO", "status_at_gp": "Pending"}])
    result = reconcile_text(EXAMPLE_TEXT, "g.pdf", "user-1", courts, directory, store)

    assert result.published_count == 1


def test_reconcile_text_no_cases(courts, records, store):
    """Test a gazette without cause entries."""
    result = reconcile_text("Vol. A No. 1 nothing else", "empty.pdf", "user-1", courts, records, store)

    assert result.total_records == 0
    assert result.published_count == 0
    assert result.gazette["cases"] == []
    assert len(store.gazettes) == 1
    assert store.scan_logs[0]["remarks"] == "Gazette empty.pdf scanned, no cause entries found."


def test_reconcile_text_twice_keeps_published(sectioned_text, courts, records, store):
    """Test that a second scan never reverts a published record."""
    reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store)
    result = reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store)

    assert records.get("rec-1")["status_at_gp"] == "Published"
    assert result.updated_records == []
    assert result.published_count == 2


def test_reconcile_text_unmatched_cases_kept(flat_text, courts, store):
    """Test that unmatched and unresolved cases stay in the gazette."""
    result = reconcile_text(flat_text, "flat.pdf", "user-1", courts, InMemoryRecordDirectory(), store)

    assert result.total_records == 3
    assert result.published_count == 0
    assert [c["court_station_id"] for c in result.gazette["cases"]] == [None, None, None]
    assert result.gazette["cases"][2]["name_of_deceased"] == "Unknown Deceased"
    assert result.gazette["cases"][2]["status"] == "Published"


def test_reconcile_text_requires_user(sectioned_text, courts, records, store):
    """Test that a scan without a user does nothing."""
    with pytest.raises(InputMissingError) as excinfo:
        reconcile_text(sectioned_text, "gazette.pdf", None, courts, records, store)

    assert excinfo.value.state == ScanState.UNAUTHENTICATED
    assert excinfo.value.kind == ErrorKind.INPUT_MISSING
    assert store.gazettes == []
    assert records.get("rec-1")["status_at_gp"] == "Pending"


def test_reconcile_text_failed_write_counts_as_match(courts, store):
    """Test that a matched case is counted even when its record write fails."""
    directory = InMemoryRecordDirectory([{"id": "r1", "name_of_deceased": "Mary Atieno", "status_at_gp": "Pending"}])
    directory.update_record_status = MagicMock(side_effect=ConnectionError("write timed out"))

    result = reconcile_text(EXAMPLE_TEXT, "g.pdf", "user-1", courts, directory, store)

    assert result.total_records == 1
    assert result.published_count == 1
    assert result.updated_records == []
    assert result.gazette["cases"][0]["record_id"] == "r1"
    assert result.outcomes[0].status == "failed"
    assert "write timed out" in result.to_dict()["outcomes"][0]["error"]
    assert directory.get("r1")["status_at_gp"] == "Pending"
    assert store.scan_logs[0]["published_count"] == 1


def test_reconcile_text_persistence_failure(sectioned_text, courts, records):
    """Test that a failed save is reported while record updates stay."""
    store = MagicMock()
    store.save_gazette.side_effect = RuntimeError("connection reset")

    with pytest.raises(PersistenceError) as excinfo:
        reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store)

    assert "connection reset" in str(excinfo.value)
    store.save_scan_log.assert_not_called()
    assert records.get("rec-1")["status_at_gp"] == "Published"


def test_reconciliation_states(sectioned_text, courts, records, store):
    """Test that the pipeline ends in the done state."""
    reconciliation = Reconciliation(courts, records, store)
    assert reconciliation.state == ScanState.START

    reconciliation.run(sectioned_text, "gazette.pdf", "user-1")

    assert reconciliation.state == ScanState.DONE


def test_reconciliation_failed_state(sectioned_text, records, store):
    """Test that an exception mid-pipeline leaves the failed state and no gazette."""
    courts = MagicMock()
    courts.find_court_by_name.side_effect = RuntimeError("directory offline")
    reconciliation = Reconciliation(courts, records, store)

    with pytest.raises(RuntimeError):
        reconciliation.run(sectioned_text, "gazette.pdf", "user-1")

    assert reconciliation.state == ScanState.FAILED
    assert store.gazettes == []
    assert store.scan_logs == []


def test_result_to_dict(sectioned_text, courts, records, store):
    """Test the success payload."""
    payload = reconcile_text(sectioned_text, "gazette.pdf", "user-1", courts, records, store).to_dict()

    assert payload["message"] == "Scan completed successfully"
    assert payload["total_records"] == 3
    assert payload["published_count"] == 2
    assert len(payload["outcomes"]) == 3
    assert payload["updated_records"][0]["id"] == "rec-1"
    assert payload["warnings"] == []


def test_build_scan_log():
    """Test scan log assembly."""
    gazette = {"file_name": "g.pdf", "total_records": 4, "published_count": 1, "uploaded_by": "u",
               "volume_no": "A No. 1", "date_published": datetime.date(2024, 1, 1), "cases": []}

    log = build_scan_log(gazette)

    assert log["total_records"] == 4
    assert log["published_count"] == 1
    assert log["remarks"] == "Gazette g.pdf scanned successfully."


@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette(mock_extract, temp_pdf, sectioned_text, courts, records, store, sample_config):
    """Test scanning an upload removes it afterwards."""
    mock_extract.return_value = sectioned_text

    result = scan_gazette(temp_pdf, "Gazette 12 March.pdf", "user-1", courts, records, store, sample_config)

    assert result.total_records == 3
    assert result.gazette["file_name"] == "Gazette 12 March.pdf"
    mock_extract.assert_called_once_with(temp_pdf, sample_config)
    assert not os.path.exists(temp_pdf)


@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette_default_file_name(mock_extract, temp_pdf, courts, records, store):
    """Test that the upload's basename is recorded by default."""
    mock_extract.return_value = EXAMPLE_TEXT

    result = scan_gazette(temp_pdf, None, "user-1", courts, records, store, keep_upload=True)

    assert result.gazette["file_name"] == os.path.basename(temp_pdf)
    assert os.path.exists(temp_pdf)


def test_scan_gazette_missing_upload(courts, records, store, temp_dir):
    """Test scanning without an upload."""
    with pytest.raises(InputMissingError) as excinfo:
        scan_gazette(None, "g.pdf", "user-1", courts, records, store)
    assert excinfo.value.state == ScanState.UPLOAD_MISSING

    with pytest.raises(InputMissingError):
        scan_gazette(os.path.join(temp_dir, "missing.pdf"), "g.pdf", "user-1", courts, records, store)

    assert store.gazettes == []


@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette_unauthenticated(mock_extract, temp_pdf, courts, records, store):
    """Test that an anonymous scan is rejected before extraction."""
    with pytest.raises(InputMissingError) as excinfo:
        scan_gazette(temp_pdf, "g.pdf", "", courts, records, store)

    assert excinfo.value.state == ScanState.UNAUTHENTICATED
    mock_extract.assert_not_called()
    assert not os.path.exists(temp_pdf)


@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette_parse_failure(mock_extract, temp_pdf, courts, records, store):
    """Test that a parse failure writes nothing and still cleans up."""
    mock_extract.side_effect = ParseError("not a PDF")

    with pytest.raises(ParseError):
        scan_gazette(temp_pdf, "g.pdf", "user-1", courts, records, store)

    assert store.gazettes == []
    assert store.scan_logs == []
    assert records.get("rec-1")["status_at_gp"] == "Pending"
    assert not os.path.exists(temp_pdf)


@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette_timeout(mock_extract, temp_pdf, courts, records, store):
    """Test that a timeout is a distinct parse failure."""
    mock_extract.side_effect = ParseTimeoutError("timed out")

    with pytest.raises(ParseTimeoutError) as excinfo:
        scan_gazette(temp_pdf, "g.pdf", "user-1", courts, records, store)

    assert excinfo.value.kind == ErrorKind.PARSE_FAILURE


@patch("gazettex.scanner.remove_upload")
@patch("gazettex.scanner.extract_text_from_pdf")
def test_scan_gazette_cleanup_failure_not_raised(mock_extract, mock_remove, temp_pdf, courts, records, store):
    """Test that the upload is removed through the best-effort helper."""
    mock_extract.return_value = EXAMPLE_TEXT
    mock_remove.return_value = False

    result = scan_gazette(temp_pdf, "g.pdf", "user-1", courts, records, store)

    assert result.total_records == 1
    mock_remove.assert_called_once_with(temp_pdf)
