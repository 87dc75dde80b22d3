"""
Gazette Extract - gazette scan reconciliation.

Extracts deceased-estate cause entries from scanned Kenya Gazette PDFs and
marks the matching registry records as published.
"""

__version__ = "0.1.0"

from gazettex.model import ExtractedCase, Gazette, Record, ScanLog, ScanState, GazetteXError
from gazettex.config import Config, MongoDBConfig, load_config
from gazettex.parser import extract_metadata, segment_blocks, extract_case, parse_text
from gazettex.matcher import match_cases, apply_mutations
from gazettex.scanner import ScanResult, reconcile_text, scan_gazette

__all__ = [
    "ExtractedCase",
    "Gazette",
    "Record",
    "ScanLog",
    "ScanState",
    "GazetteXError",
    "Config",
    "MongoDBConfig",
    "load_config",
    "extract_metadata",
    "segment_blocks",
    "extract_case",
    "parse_text",
    "match_cases",
    "apply_mutations",
    "ScanResult",
    "reconcile_text",
    "scan_gazette",
]
