"""
Data models for Gazette Extract.
"""

import datetime
from enum import Enum
from typing import List, Optional, TypedDict


# Sentinels used when extraction degrades
UNKNOWN_VOLUME = "Unknown Volume"
UNKNOWN_CAUSE_NO = "N/A"
UNKNOWN_STATION = "Unknown Station"
UNKNOWN_DECEASED = "Unknown Deceased"

STATUS_PENDING = "Pending"
STATUS_PUBLISHED = "Published"


class GazetteMetadata(TypedDict):
    """
    Gazette-wide values read from the document header.
    """

    volume_no: str  # e.g. "CXXVI—No. 45", or UNKNOWN_VOLUME
    date_published: datetime.date
    warnings: List[str]


class CaseBlock(TypedDict):
    """
    Raw text of one cause entry.
    """

    text: str  # Starts at the cause-number marker
    court_section: Optional[str]  # Station of the enclosing court section, None in flat layouts
    offset: int  # Character offset of the block in the scan text


class ExtractedCase(TypedDict, total=False):
    """
    One cause entry as asserted by the gazette.
    """

    cause_no: str  # "123/2024" or UNKNOWN_CAUSE_NO
    court_name_raw: str  # Station as printed, or UNKNOWN_STATION
    court_station_id: Optional[str]  # Resolved court reference
    name_of_deceased: str  # Lowercase, whitespace-collapsed
    name_display: str  # Name as printed
    volume_no: str
    date_published: datetime.date
    status: str  # Always STATUS_PUBLISHED
    parse_warnings: List[str]


class Record(TypedDict, total=False):
    """
    Case-tracking record owned by the registry.
    """

    id: str
    no: int
    name_of_deceased: str
    cause_no: str
    court_station_id: Optional[str]
    status_at_gp: str  # STATUS_PENDING or STATUS_PUBLISHED
    volume_no: str
    date_published: Optional[datetime.date]


class Court(TypedDict, total=False):
    """
    Court directory entry.
    """

    id: str
    name: str  # Canonical upper-case name
    level: str
    primary_email: str
    secondary_emails: List[str]


class GazetteCase(TypedDict, total=False):
    """
    Case entry embedded in a gazette document.
    """

    cause_no: str
    court_name: str
    court_station_id: Optional[str]
    name_of_deceased: str
    volume_no: str
    date_published: datetime.date
    status: str
    record_id: Optional[str]  # Matched registry record, if any


class Gazette(TypedDict, total=False):
    """
    Persisted result of one successful scan.
    """

    id: str
    file_name: str
    volume_no: str
    date_published: datetime.date
    cases: List[GazetteCase]
    total_records: int
    published_count: int
    uploaded_by: str


class ScanLog(TypedDict, total=False):
    """
    Audit entry for one scan.
    """

    id: str
    file_name: str
    total_records: int
    published_count: int
    remarks: str
    uploaded_by: str
    volume_no: str
    date_published: datetime.date
    date_scanned: datetime.datetime


class ScanState(Enum):
    """
    States of the reconciliation pipeline.
    """

    START = "start"
    METADATA_EXTRACTED = "metadata_extracted"
    SEGMENTED = "segmented"
    FIELDS_EXTRACTED = "fields_extracted"
    COURTS_RESOLVED = "courts_resolved"
    RECORDS_MATCHED = "records_matched"
    PERSISTED = "persisted"
    REPORT_ASSEMBLED = "report_assembled"
    DONE = "done"
    UPLOAD_MISSING = "upload_missing"
    UNAUTHENTICATED = "unauthenticated"
    FAILED = "failed"


class ErrorKind(Enum):
    """
    Failure taxonomy surfaced to callers.
    """

    INPUT_MISSING = "InputMissing"
    PARSE_FAILURE = "ParseFailure"
    EXTRACTION_DEGRADED = "ExtractionDegraded"
    PERSISTENCE_FAILURE = "PersistenceFailure"
    MUTATION_FAILURE = "MutationFailure"
    CONFIG_ERROR = "ConfigError"
    OUTPUT_ERROR = "OutputError"


class GazetteXError(Exception):
    """Base class for all gazettex exceptions."""

    kind = None

    def to_dict(self) -> dict:
        return {"kind": self.kind.value if self.kind else None, "message": str(self)}


class InputMissingError(GazetteXError):
    """Exception raised when the upload or the acting user is missing."""

    kind = ErrorKind.INPUT_MISSING

    def __init__(self, message: str, state: ScanState = ScanState.UPLOAD_MISSING):
        super().__init__(message)
        self.state = state


class ParseError(GazetteXError):
    """Exception raised when text cannot be obtained from the upload."""

    kind = ErrorKind.PARSE_FAILURE


class ParseTimeoutError(ParseError):
    """Exception raised when text extraction exceeds its time budget."""

    pass


class PersistenceError(GazetteXError):
    """Exception raised when the gazette or scan log cannot be written."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class MutationError(GazetteXError):
    """Exception raised when a single record update fails."""

    kind = ErrorKind.MUTATION_FAILURE


class ConfigError(GazetteXError):
    """Exception raised for configuration errors."""

    kind = ErrorKind.CONFIG_ERROR


class OutputError(GazetteXError):
    """Exception raised for output errors."""

    kind = ErrorKind.OUTPUT_ERROR
