"""
Parser module for Gazette Extract.

Turns the normalized text of a gazette into metadata and extracted cases.
Every extraction step returns an optional value; missing fields fall back to
sentinels and are recorded as warnings instead of raising.
"""

import bisect
import datetime
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from gazettex.config import Config
from gazettex.log import get_logger
from gazettex.model import (
    STATUS_PUBLISHED,
    UNKNOWN_CAUSE_NO,
    UNKNOWN_DECEASED,
    UNKNOWN_STATION,
    UNKNOWN_VOLUME,
    CaseBlock,
    ExtractedCase,
    GazetteMetadata,
)

logger = get_logger(__name__)

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTH_NUMBERS = {name.lower(): i for i, name in enumerate(MONTHS, 1)}

# Words that can follow a station name but are never part of it
STATION_STOPWORDS = [
    "CAUSE", "SUCCESSION", "PROBATE", "MISCELLANEOUS", "MISC", "ESTATE",
    "IN", "THE", "OF", "AT", "NO", "AND", "P", "HIGH", "LAW", "COURT",
    "COURTS", "KENYA", "GAZETTE", "NOTICE",
]
_STOP = r"(?!(?:" + "|".join(STATION_STOPWORDS) + r")\b)"
_STATION_TOKEN = _STOP + r"[A-Z][A-Z'’\-]*(?![A-Za-z])"
_STATION = _STATION_TOKEN + r"(?:\s+" + _STATION_TOKEN + r")*"

# Regex patterns
VOLUME_REGEX = re.compile(
    r"\b(?:Volume\b|Vol\b\.?)\s*"
    r"(?P<volume>(?:[A-Z]+\s*)?[-–—]?\s*No\b\.?\s*\d+)",
    re.IGNORECASE,
)
DATE_REGEX = re.compile(
    r"(?:Published\s+on\s+)?\b(?P<day>\d{1,2})(?:st|nd|rd|th)?\s+"
    r"(?P<month>" + "|".join(MONTHS) + r"),?\s+(?P<year>\d{4})\b",
    re.IGNORECASE,
)
CAUSE_MARKER_REGEX = re.compile(
    r"\bCause\s+No\b\.?\s*(?P<number>\d+)\s*(?:/|\bof\b)\s*(?P<year>\d{4})\b",
    re.IGNORECASE,
)
# "IN THE HIGH COURT OF KENYA AT NAIROBI": keywords in any case, station in capitals
SECTION_HEADER_REGEX = re.compile(
    r"\b(?i:in\s+the)\s+(?:[A-Za-z'’]+\s+){0,3}?(?i:court)"
    r"(?:\s+(?i:of\s+kenya))?\s+(?i:at)\s+(?P<station>" + _STATION + r")"
)
FLAT_COURT_REGEX = re.compile(
    r"\b(?i:high\s+court)(?:\s+(?i:of\s+kenya))?\s+(?i:at)\s+"
    r"(?P<station>" + _STATION + r"|[A-Za-z][A-Za-z'’\-]*)"
)
# "NAIROBI HIGH COURT", "KIBERA LAW COURTS"
LEADING_STATION_REGEX = re.compile(
    r"\b(?P<station>" + _STATION_TOKEN + r"(?:\s+" + _STATION_TOKEN + r")?)\s+"
    r"(?:HIGH\s+COURT|LAW\s+COURTS?|CHIEF\s+MAGISTRATE'?S?\s+COURT|KADHI'?S?\s+COURT)\b"
)
ESTATE_OF_REGEX = re.compile(r"\bestate\s+of\s+(?:the\s+late\s+)?", re.IGNORECASE)
NAME_TERMINATOR_REGEX = re.compile(r",|\blate\b|\bwho\b|\bdeceased\b|[–—]", re.IGNORECASE)
WHITESPACE_REGEX = re.compile(r"\s+")


def collapse(text: str) -> str:
    """Collapse whitespace and trim."""
    return WHITESPACE_REGEX.sub(" ", text).strip()


def compile_terminators(phrases: Sequence[str]) -> Optional[Pattern]:
    """
    Compile section-terminator phrases into one case-insensitive pattern.

    Args:
        phrases: Phrases such as "GAZETTE NOTICE"

    Returns:
        Compiled pattern, or None when there are no phrases
    """
    parts = [r"\s+".join(re.escape(word) for word in phrase.split()) for phrase in phrases if phrase.strip()]
    if not parts:
        return None
    return re.compile(r"\b(?:" + "|".join(parts) + r")\b", re.IGNORECASE)


# --- Metadata ---------------------------------------------------------------

def extract_volume(text: str) -> Optional[str]:
    """
    Find the gazette volume designation, e.g. "Vol. CXXVI—No. 45" -> "CXXVI—No. 45".

    Args:
        text: Normalized scan text

    Returns:
        Volume designation without the "Vol."/"Volume" label, or None
    """
    match = VOLUME_REGEX.search(text)
    if not match:
        return None
    return collapse(match.group("volume"))


def extract_date(text: str) -> Optional[datetime.date]:
    """
    Find the publication date, e.g. "Published on 12th March, 2024".

    The first match that forms a valid calendar date wins.

    Args:
        text: Normalized scan text

    Returns:
        Publication date, or None
    """
    for match in DATE_REGEX.finditer(text):
        try:
            return datetime.date(
                int(match.group("year")),
                MONTH_NUMBERS[match.group("month").lower()],
                int(match.group("day")),
            )
        except ValueError:
            logger.debug(f"Skipping invalid date: {match.group(0)}")
    return None


def extract_metadata(text: str, today: Optional[datetime.date] = None) -> GazetteMetadata:
    """
    Extract gazette-wide metadata, falling back to defaults.

    Args:
        text: Normalized scan text
        today: Fallback publication date (defaults to the current date)

    Returns:
        Gazette metadata with any degradation warnings
    """
    warnings = []

    volume_no = extract_volume(text)
    if volume_no is None:
        volume_no = UNKNOWN_VOLUME
        warnings.append("Volume number not found")

    date_published = extract_date(text)
    if date_published is None:
        date_published = today or datetime.date.today()
        warnings.append("Publication date not found, using scan date")

    for warning in warnings:
        logger.warning(warning)

    return {"volume_no": volume_no, "date_published": date_published, "warnings": warnings}


# --- Segmentation -----------------------------------------------------------

def find_section_headers(text: str, markers: Optional[List[int]] = None) -> List[Tuple[int, str]]:
    """
    Find court-section headers.

    A court phrase only opens a section when it introduces the entries that
    follow it. One that sits inside an entry, with the "estate of" wording
    between it and the next cause marker, is part of that entry instead.

    Args:
        text: Normalized scan text
        markers: Offsets of the cause markers (found when not given)

    Returns:
        List of (offset, station) in document order
    """
    if markers is None:
        markers = [m.start() for m in CAUSE_MARKER_REGEX.finditer(text)]

    headers = []
    for match in SECTION_HEADER_REGEX.finditer(text):
        idx = bisect.bisect_right(markers, match.start())
        end = markers[idx] if idx < len(markers) else len(text)
        if ESTATE_OF_REGEX.search(text, match.end(), end):
            logger.debug(f"Court phrase at offset {match.start()} belongs to its entry")
            continue
        headers.append((match.start(), collapse(match.group("station"))))
    return headers


def segment_blocks(text: str, cfg: Optional[Config] = None) -> List[CaseBlock]:
    """
    Split scan text into one block per cause entry.

    A block runs from its cause marker to the next marker, section header,
    terminator phrase or the end of the text. Text before the first marker
    is dropped.

    Args:
        text: Normalized scan text
        cfg: Application configuration

    Returns:
        Blocks in document order
    """
    cfg = cfg or Config()
    markers = [m.start() for m in CAUSE_MARKER_REGEX.finditer(text)]
    if not markers:
        logger.warning("No cause-number markers found in scan text")
        return []

    headers = find_section_headers(text, markers)
    header_offsets = [offset for offset, _ in headers]

    boundaries = set(markers) | set(header_offsets)
    terminators = compile_terminators(cfg.parsing.terminator_phrases)
    if terminators:
        boundaries.update(m.start() for m in terminators.finditer(text))
    boundaries.add(len(text))
    boundaries = sorted(boundaries)

    if headers:
        logger.info(f"Found {len(headers)} court sections and {len(markers)} cause markers")
    else:
        logger.info(f"Found {len(markers)} cause markers (no court sections)")

    blocks = []
    for start in markers:
        end = boundaries[bisect.bisect_right(boundaries, start)]

        # Nearest header at or before the marker owns it
        idx = bisect.bisect_right(header_offsets, start) - 1
        court_section = headers[idx][1] if idx >= 0 else None

        blocks.append({
            "text": text[start:end].strip(),
            "court_section": court_section,
            "offset": start,
        })

    return blocks


# --- Field extraction -------------------------------------------------------

def extract_cause_no(block: str) -> Optional[str]:
    """
    Extract the cause number in "123/2024" form.

    Args:
        block: Block text

    Returns:
        Cause number, or None
    """
    match = CAUSE_MARKER_REGEX.search(block)
    if not match:
        return None
    return f"{match.group('number')}/{match.group('year')}"


def extract_court_name(block: str, court_section: Optional[str] = None) -> Optional[str]:
    """
    Extract the court station a block belongs to.

    Args:
        block: Block text
        court_section: Station of the enclosing court section, if any

    Returns:
        Upper-case station name, or None
    """
    if court_section:
        return court_section

    match = FLAT_COURT_REGEX.search(block) or LEADING_STATION_REGEX.search(block)
    if match:
        return collapse(match.group("station")).upper()

    return None


def extract_deceased_name(block: str, max_words: int = 8) -> Optional[Tuple[str, str]]:
    """
    Extract the deceased's name following "estate of".

    The name ends at the first comma, "late", "who", "deceased", en dash or
    em dash. Without any of those it is cut at max_words words.

    Args:
        block: Block text
        max_words: Word cap for unterminated names

    Returns:
        Tuple of (normalized lowercase name, name as printed), or None
    """
    match = ESTATE_OF_REGEX.search(block)
    if not match:
        return None

    rest = block[match.end():]
    terminator = NAME_TERMINATOR_REGEX.search(rest)
    if terminator:
        raw = rest[:terminator.start()]
    else:
        raw = " ".join(rest.split()[:max_words])

    display = collapse(raw).strip(" .;:()")
    if not display:
        return None
    return display.lower(), display


def extract_case(block: CaseBlock, metadata: GazetteMetadata, cfg: Optional[Config] = None) -> ExtractedCase:
    """
    Build an extracted case from one block.

    Args:
        block: Cause block
        metadata: Gazette-wide metadata
        cfg: Application configuration

    Returns:
        Extracted case; the court reference is left unresolved
    """
    cfg = cfg or Config()
    warnings = []
    text = block["text"]

    cause_no = extract_cause_no(text)
    if cause_no is None:
        cause_no = UNKNOWN_CAUSE_NO
        warnings.append("Cause number not found")

    court_name = extract_court_name(text, block.get("court_section"))
    if court_name is None:
        court_name = UNKNOWN_STATION
        warnings.append("Court station not found")

    name = extract_deceased_name(text, cfg.parsing.max_name_words)
    if name is None:
        name_of_deceased, name_display = UNKNOWN_DECEASED, UNKNOWN_DECEASED
        warnings.append("Name of deceased not found")
    else:
        name_of_deceased, name_display = name

    for warning in warnings:
        logger.debug(f"Block at offset {block['offset']}: {warning}")

    return {
        "cause_no": cause_no,
        "court_name_raw": court_name,
        "court_station_id": None,
        "name_of_deceased": name_of_deceased,
        "name_display": name_display,
        "volume_no": metadata["volume_no"],
        "date_published": metadata["date_published"],
        "status": STATUS_PUBLISHED,
        "parse_warnings": warnings,
    }


def parse_text(
    text: str, cfg: Optional[Config] = None, today: Optional[datetime.date] = None
) -> Tuple[GazetteMetadata, List[ExtractedCase]]:
    """
    Extract metadata and cases from scan text.

    Args:
        text: Normalized scan text
        cfg: Application configuration
        today: Fallback publication date

    Returns:
        Tuple of (metadata, extracted cases)
    """
    cfg = cfg or Config()
    metadata = extract_metadata(text, today)
    blocks = segment_blocks(text, cfg)
    cases = [extract_case(block, metadata, cfg) for block in blocks]
    logger.info(f"Extracted {len(cases)} cases")
    return metadata, cases
