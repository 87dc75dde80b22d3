"""
Record matching for extracted cases.

Matching is exact, case-insensitive equality on the normalized name of the
deceased. Each record is claimed by at most one case per scan and each case
claims at most one record; the first claim wins.
"""

import concurrent.futures
from typing import Any, Dict, List, Optional

from gazettex.config import Config
from gazettex.directory import RecordDirectory, normalize_name
from gazettex.log import get_logger
from gazettex.model import (
    STATUS_PENDING,
    STATUS_PUBLISHED,
    UNKNOWN_DECEASED,
    ExtractedCase,
    GazetteMetadata,
    MutationError,
    Record,
)

logger = get_logger(__name__)

UNMATCHED = "unmatched"
MATCHED = "matched"
UPDATED = "updated"
ALREADY_PUBLISHED = "already_published"
FAILED = "failed"


class MatchOutcome:
    """Result of matching one extracted case against the record directory."""

    def __init__(self, case: ExtractedCase, record: Optional[Record] = None):
        self.case = case
        self.record = record
        self.status = MATCHED if record is not None else UNMATCHED
        self.error: Optional[MutationError] = None

    @property
    def record_id(self) -> Optional[str]:
        return self.record.get("id") if self.record is not None else None

    @property
    def matched(self) -> bool:
        """Whether the case found a record, even if its write then failed."""
        return self.record is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cause_no": self.case["cause_no"],
            "name_of_deceased": self.case["name_of_deceased"],
            "record_id": self.record_id,
            "status": self.status,
            "error": str(self.error) if self.error else None,
        }


def match_cases(cases: List[ExtractedCase], records: RecordDirectory) -> List[MatchOutcome]:
    """
    Pair every extracted case with at most one record.

    Args:
        cases: Extracted cases
        records: Record directory

    Returns:
        One outcome per case, in case order
    """
    claimed = set()
    outcomes = []

    for case in cases:
        name = normalize_name(case["name_of_deceased"])
        if not name or name == normalize_name(UNKNOWN_DECEASED):
            outcomes.append(MatchOutcome(case))
            continue

        match = None
        for record in records.find_records_by_normalized_name(name):
            if normalize_name(record.get("name_of_deceased")) != name:
                continue
            if record.get("id") in claimed:
                continue
            match = record
            break

        if match is None:
            logger.debug(f"No record for '{name}' ({case['cause_no']})")
        else:
            claimed.add(match.get("id"))
            logger.debug(f"Matched '{name}' ({case['cause_no']}) to record {match.get('id')}")
        outcomes.append(MatchOutcome(case, match))

    matched = sum(1 for o in outcomes if o.record is not None)
    logger.info(f"Matched {matched} of {len(cases)} cases to records")
    return outcomes


def build_update(metadata: GazetteMetadata) -> Dict[str, Any]:
    """Status update applied to every newly published record."""
    return {
        "status_at_gp": STATUS_PUBLISHED,
        "volume_no": metadata["volume_no"],
        "date_published": metadata["date_published"],
    }


def publish_record(outcome: MatchOutcome, records: RecordDirectory, update: Dict[str, Any]) -> MatchOutcome:
    """
    Apply the Pending -> Published transition to the record of one outcome.

    A failed write is recorded on the outcome and logged, never raised.

    Args:
        outcome: Matched outcome
        records: Record directory
        update: Status update

    Returns:
        The same outcome
    """
    record = outcome.record
    if record is None:
        return outcome

    if record.get("status_at_gp", STATUS_PENDING) == STATUS_PUBLISHED:
        outcome.status = ALREADY_PUBLISHED
        return outcome

    try:
        records.update_record_status(record["id"], update)
    except Exception as e:
        logger.error(f"Failed to update record {record.get('id')}: {e}")
        outcome.error = MutationError(f"Failed to update record {record.get('id')}: {e}")
        outcome.status = FAILED
        return outcome

    record.update(update)
    outcome.status = UPDATED
    return outcome


def apply_mutations(
    outcomes: List[MatchOutcome],
    records: RecordDirectory,
    metadata: GazetteMetadata,
    cfg: Optional[Config] = None,
) -> List[MatchOutcome]:
    """
    Write one status update per matched record.

    Args:
        outcomes: Match outcomes, updated in place
        records: Record directory
        metadata: Gazette-wide metadata
        cfg: Application configuration

    Returns:
        The outcomes whose record was updated in this scan
    """
    cfg = cfg or Config()
    update = build_update(metadata)
    matched = [o for o in outcomes if o.record is not None]

    if cfg.performance.parallel_io and len(matched) > 1:
        # Matched records are distinct, so the writes are independent
        with concurrent.futures.ThreadPoolExecutor(max_workers=cfg.performance.max_workers) as executor:
            list(executor.map(lambda o: publish_record(o, records, update), matched))
    else:
        for outcome in matched:
            publish_record(outcome, records, update)

    updated = [o for o in matched if o.status == UPDATED]
    failed = [o for o in matched if o.status == FAILED]
    logger.info(f"Published {len(updated)} records ({len(failed)} failed)")
    return updated
