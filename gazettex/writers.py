"""
Output writers for Gazette Extract.
"""

import csv
import datetime
import json
import os
from typing import Any, Dict, List

from gazettex.config import Config
from gazettex.log import get_logger
from gazettex.model import GazetteCase, OutputError

logger = get_logger(__name__)

CSV_FIELDS = ["cause_no", "court_name", "court_station_id", "name_of_deceased",
              "volume_no", "date_published", "status", "record_id"]


def json_default(value: Any) -> str:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def write_outputs(payload: Dict[str, Any], cfg: Config) -> None:
    """
    Write a scan payload to all configured output formats.

    Args:
        payload: Scan result dictionary (ScanResult.to_dict())
        cfg: Application configuration
    """
    if cfg.output.json_path:
        write_json(payload, cfg.output.json_path, cfg.output.pretty_json)

    if cfg.output.csv_path:
        write_csv(payload["gazette"]["cases"], cfg.output.csv_path)


def write_json(payload: Any, path: str, pretty: bool = True) -> None:
    """
    Write a payload to a JSON file.

    Args:
        payload: JSON-serializable data (dates are written as ISO strings)
        path: Output file path
        pretty: Whether to pretty-print the JSON
    """
    logger.info(f"Writing JSON to {path}")

    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2 if pretty else None, ensure_ascii=False, default=json_default)
    except Exception as e:
        logger.error(f"Error writing JSON to {path}: {e}")
        raise OutputError(f"Error writing JSON to {path}: {e}") from e


def write_csv(cases: List[GazetteCase], path: str) -> None:
    """
    Write gazette cases to a CSV file, one row per case.

    Args:
        cases: Gazette cases
        path: Output file path
    """
    logger.info(f"Writing CSV to {path}")

    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
            writer.writeheader()
            for case in cases:
                row = dict(case)
                if isinstance(row.get("date_published"), datetime.date):
                    row["date_published"] = row["date_published"].isoformat()
                writer.writerow(row)

        logger.info(f"Wrote {len(cases)} rows to {path}")
    except Exception as e:
        logger.error(f"Error writing CSV to {path}: {e}")
        raise OutputError(f"Error writing CSV to {path}: {e}") from e
