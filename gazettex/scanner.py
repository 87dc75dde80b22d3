"""
Gazette scan reconciliation.

Runs extracted gazette cases against the registry and records the outcome:
Start -> MetadataExtracted -> Segmented -> FieldsExtracted -> CourtsResolved
-> RecordsMatched -> Persisted -> ReportAssembled -> Done.

Record updates are written one at a time while matching, before the gazette
and scan log are saved. A failure while saving leaves those updates in place.
"""

import datetime
import os
from typing import Any, Dict, List, Optional

from gazettex.config import Config
from gazettex.directory import CourtDirectory, RecordDirectory, ScanStore
from gazettex.log import get_logger
from gazettex.matcher import MatchOutcome, apply_mutations, match_cases
from gazettex.model import (
    Gazette,
    GazetteCase,
    GazetteMetadata,
    GazetteXError,
    InputMissingError,
    PersistenceError,
    Record,
    ScanLog,
    ScanState,
)
from gazettex.parser import extract_case, extract_metadata, segment_blocks
from gazettex.pdfio import extract_text_from_pdf, remove_upload
from gazettex.resolver import resolve_courts

logger = get_logger(__name__)


class ScanResult:
    """Success payload of one gazette scan."""

    def __init__(self, gazette: Gazette, scan_log: ScanLog, outcomes: List[MatchOutcome],
                 updated_records: List[Record], metadata: GazetteMetadata):
        self.gazette = gazette
        self.scan_log = scan_log
        self.outcomes = outcomes
        self.updated_records = updated_records
        self.metadata = metadata

    @property
    def total_records(self) -> int:
        return self.gazette["total_records"]

    @property
    def published_count(self) -> int:
        return self.gazette["published_count"]

    @property
    def message(self) -> str:
        return "Scan completed successfully"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "gazette": self.gazette,
            "scan_log": self.scan_log,
            "updated_records": self.updated_records,
            "published_count": self.published_count,
            "total_records": self.total_records,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "warnings": self.metadata["warnings"],
        }


class Reconciliation:
    """
    One pass of the reconciliation pipeline over a scan text.
    """

    def __init__(self, courts: CourtDirectory, records: RecordDirectory, store: ScanStore,
                 cfg: Optional[Config] = None):
        self.courts = courts
        self.records = records
        self.store = store
        self.cfg = cfg or Config()
        self.state = ScanState.START

    def advance(self, state: ScanState) -> None:
        logger.debug(f"Scan state: {self.state.value} -> {state.value}")
        self.state = state

    def run(self, text: str, file_name: str, uploaded_by: str,
            today: Optional[datetime.date] = None) -> ScanResult:
        """
        Reconcile one scan text.

        Args:
            text: Normalized scan text
            file_name: Original upload filename
            uploaded_by: Acting user reference
            today: Fallback publication date

        Returns:
            Scan result
        """
        try:
            metadata = extract_metadata(text, today)
            self.advance(ScanState.METADATA_EXTRACTED)

            blocks = segment_blocks(text, self.cfg)
            self.advance(ScanState.SEGMENTED)

            cases = [extract_case(block, metadata, self.cfg) for block in blocks]
            self.advance(ScanState.FIELDS_EXTRACTED)

            resolve_courts(cases, self.courts, self.cfg)
            self.advance(ScanState.COURTS_RESOLVED)

            outcomes = match_cases(cases, self.records)
            updated = apply_mutations(outcomes, self.records, metadata, self.cfg)
            self.advance(ScanState.RECORDS_MATCHED)

            gazette = build_gazette(outcomes, metadata, file_name, uploaded_by)
            scan_log = build_scan_log(gazette)
            self.persist(gazette, scan_log)
            self.advance(ScanState.PERSISTED)

            result = ScanResult(gazette, scan_log, outcomes, [o.record for o in updated], metadata)
            self.advance(ScanState.REPORT_ASSEMBLED)
        except Exception:
            self.advance(ScanState.FAILED)
            raise

        logger.info(
            f"Scanned {file_name}: {result.total_records} cases, "
            f"{result.published_count} published"
        )
        self.advance(ScanState.DONE)
        return result

    def persist(self, gazette: Gazette, scan_log: ScanLog) -> None:
        try:
            gazette["id"] = self.store.save_gazette(gazette)
            scan_log["id"] = self.store.save_scan_log(scan_log)
        except Exception as e:
            logger.error(f"Error saving scan of {gazette['file_name']}: {e}")
            raise PersistenceError(f"Error saving scan of {gazette['file_name']}: {e}") from e


def build_gazette(outcomes: List[MatchOutcome], metadata: GazetteMetadata,
                  file_name: str, uploaded_by: str) -> Gazette:
    """
    Assemble the gazette document. Every extracted case is embedded,
    matched or not.

    Args:
        outcomes: Match outcomes in case order
        metadata: Gazette-wide metadata
        file_name: Original upload filename
        uploaded_by: Acting user reference

    Returns:
        Gazette document
    """
    cases: List[GazetteCase] = []
    for outcome in outcomes:
        case = outcome.case
        cases.append({
            "cause_no": case["cause_no"],
            "court_name": case["court_name_raw"],
            "court_station_id": case.get("court_station_id"),
            "name_of_deceased": case["name_of_deceased"],
            "volume_no": case["volume_no"],
            "date_published": case["date_published"],
            "status": case["status"],
            "record_id": outcome.record_id,
        })

    return {
        "file_name": file_name,
        "volume_no": metadata["volume_no"],
        "date_published": metadata["date_published"],
        "cases": cases,
        "total_records": len(cases),
        "published_count": sum(1 for o in outcomes if o.matched),
        "uploaded_by": uploaded_by,
    }


def build_scan_log(gazette: Gazette) -> ScanLog:
    """Assemble the audit entry for a gazette."""
    if gazette["total_records"]:
        remarks = f"Gazette {gazette['file_name']} scanned successfully."
    else:
        remarks = f"Gazette {gazette['file_name']} scanned, no cause entries found."

    return {
        "file_name": gazette["file_name"],
        "total_records": gazette["total_records"],
        "published_count": gazette["published_count"],
        "remarks": remarks,
        "uploaded_by": gazette["uploaded_by"],
        "volume_no": gazette["volume_no"],
        "date_published": gazette["date_published"],
        "date_scanned": datetime.datetime.now(),
    }


def reconcile_text(text: str, file_name: str, uploaded_by: str, courts: CourtDirectory,
                   records: RecordDirectory, store: ScanStore, cfg: Optional[Config] = None,
                   today: Optional[datetime.date] = None) -> ScanResult:
    """
    Reconcile already-extracted gazette text against the registry.

    Args:
        text: Normalized scan text
        file_name: Original upload filename
        uploaded_by: Acting user reference
        courts: Court directory
        records: Record directory
        store: Scan store
        cfg: Application configuration
        today: Fallback publication date

    Returns:
        Scan result
    """
    if not uploaded_by:
        raise InputMissingError("No authenticated user for scan", ScanState.UNAUTHENTICATED)
    return Reconciliation(courts, records, store, cfg).run(text, file_name, uploaded_by, today)


def scan_gazette(upload_path: Optional[str], file_name: Optional[str], uploaded_by: Optional[str],
                 courts: CourtDirectory, records: RecordDirectory, store: ScanStore,
                 cfg: Optional[Config] = None, keep_upload: bool = False) -> ScanResult:
    """
    Scan an uploaded gazette PDF and reconcile it against the registry.

    The upload is deleted afterwards, whether the scan succeeded or not.

    Args:
        upload_path: Path of the uploaded PDF
        file_name: Original upload filename (defaults to the path's basename)
        uploaded_by: Acting user reference
        courts: Court directory
        records: Record directory
        store: Scan store
        cfg: Application configuration
        keep_upload: Leave the upload on disk

    Returns:
        Scan result
    """
    cfg = cfg or Config()

    if not upload_path or not os.path.isfile(upload_path):
        raise InputMissingError("No PDF file uploaded", ScanState.UPLOAD_MISSING)

    try:
        if not uploaded_by:
            raise InputMissingError("No authenticated user for scan", ScanState.UNAUTHENTICATED)

        file_name = file_name or os.path.basename(upload_path)
        text = extract_text_from_pdf(upload_path, cfg)
        return reconcile_text(text, file_name, uploaded_by, courts, records, store, cfg)
    except GazetteXError as e:
        logger.error(f"Scan of {upload_path} failed ({e.kind.value}): {e}")
        raise
    finally:
        if not keep_upload:
            remove_upload(upload_path)
