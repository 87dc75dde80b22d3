"""
Court resolution for extracted cases.
"""

import concurrent.futures
from typing import List, Optional

from gazettex.config import Config
from gazettex.directory import CourtDirectory
from gazettex.log import get_logger
from gazettex.model import UNKNOWN_STATION, ExtractedCase

logger = get_logger(__name__)


def resolve_court(court_name_raw: Optional[str], courts: CourtDirectory) -> Optional[str]:
    """
    Map a printed station name to a court reference.

    The directory does a case-insensitive substring match; when several
    courts match, the first one it returns is taken.

    Args:
        court_name_raw: Station as printed in the gazette
        courts: Court directory

    Returns:
        Court id, or None when nothing matches
    """
    if not court_name_raw or court_name_raw == UNKNOWN_STATION:
        return None

    court = courts.find_court_by_name(court_name_raw)
    if court is None:
        logger.warning(f"No court found for station '{court_name_raw}'")
        return None

    court_id = court.get("id")
    logger.debug(f"Resolved '{court_name_raw}' to {court.get('name')} ({court_id})")
    return court_id


def resolve_courts(cases: List[ExtractedCase], courts: CourtDirectory, cfg: Optional[Config] = None) -> int:
    """
    Fill in court_station_id on every case. Unresolved cases are kept.

    Args:
        cases: Extracted cases, updated in place
        courts: Court directory
        cfg: Application configuration

    Returns:
        Number of cases resolved to a court
    """
    cfg = cfg or Config()

    if cfg.performance.parallel_io and len(cases) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=cfg.performance.max_workers) as executor:
            ids = list(executor.map(lambda c: resolve_court(c["court_name_raw"], courts), cases))
    else:
        ids = [resolve_court(case["court_name_raw"], courts) for case in cases]

    for case, court_id in zip(cases, ids):
        case["court_station_id"] = court_id

    resolved = sum(1 for court_id in ids if court_id is not None)
    logger.info(f"Resolved courts for {resolved} of {len(cases)} cases")
    return resolved
