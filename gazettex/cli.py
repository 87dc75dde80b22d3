"""
Command-line interface for Gazette Extract.
"""

import argparse
import json
import sys
from typing import Any

from gazettex.config import Config, load_config
from gazettex.db.mongo import open_directories, setup_mongodb
from gazettex.log import configure_logging, get_logger
from gazettex.model import ConfigError, GazetteXError
from gazettex.parser import parse_text
from gazettex.pdfio import extract_text_from_pdf
from gazettex.scanner import scan_gazette
from gazettex.writers import json_default, write_outputs

logger = get_logger(__name__)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=json_default))


def require_mongodb(config: Config):
    if config.mongodb is None or not config.mongodb.enabled:
        raise ConfigError("MongoDB is not configured; set mongodb.enabled in the config file")
    return config.mongodb


def process_command(args: argparse.Namespace) -> int:
    """
    Process command-line arguments.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    config = load_config(args.config)
    configure_logging(config, args.log_level)

    if args.command == "scan":
        if args.json:
            config.output.json_path = args.json
        if args.csv:
            config.output.csv_path = args.csv

        courts, records, store = open_directories(require_mongodb(config))
        result = scan_gazette(
            args.file, args.file_name, args.user, courts, records, store,
            config, keep_upload=args.keep_upload,
        )
        payload = result.to_dict()
        write_outputs(payload, config)

        print(f"{result.message}: {result.published_count} of {result.total_records} cases published "
              f"(volume {result.gazette['volume_no']}, {result.gazette['date_published']})")
        return 0
    elif args.command == "parse":
        text = extract_text_from_pdf(args.file, config)
        metadata, cases = parse_text(text, config)
        print_json({"metadata": metadata, "cases": cases})
        return 0
    elif args.command == "gazettes":
        _, _, store = open_directories(require_mongodb(config))
        for gazette in store.list_gazettes():
            print(f"{gazette['id']}  {gazette['date_published']}  {gazette['volume_no']:<20}  "
                  f"{gazette['published_count']}/{gazette['total_records']}  {gazette['file_name']}")
        return 0
    elif args.command == "gazette":
        _, _, store = open_directories(require_mongodb(config))
        gazette = store.get_gazette(args.id)
        if gazette is None:
            logger.error(f"Gazette not found: {args.id}")
            return 1
        print_json(gazette)
        return 0
    elif args.command == "logs":
        _, _, store = open_directories(require_mongodb(config))
        print_json(store.list_scan_logs())
        return 0
    elif args.command == "setup-db":
        setup_mongodb(require_mongodb(config))
        return 0

    logger.error("No command given")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gazette Extract")
    parser.add_argument("--config", default=None, help="Path to configuration file")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Logging level")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Scan a gazette PDF and update matching records")
    scan_parser.add_argument("file", help="Gazette PDF")
    scan_parser.add_argument("--user", required=True, help="Id of the user running the scan")
    scan_parser.add_argument("--file-name", help="Original filename to record (defaults to the PDF's name)")
    scan_parser.add_argument("--keep-upload", action="store_true", help="Do not delete the PDF afterwards")
    scan_parser.add_argument("--json", help="JSON output file")
    scan_parser.add_argument("--csv", help="CSV output file for the extracted cases")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Extract cases from a gazette PDF without touching the database")
    parse_parser.add_argument("file", help="Gazette PDF")

    subparsers.add_parser("gazettes", help="List scanned gazettes")

    gazette_parser = subparsers.add_parser("gazette", help="Show one scanned gazette")
    gazette_parser.add_argument("id", help="Gazette id")

    subparsers.add_parser("logs", help="List scan logs")
    subparsers.add_parser("setup-db", help="Create MongoDB indexes")

    return parser


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        return process_command(args)
    except GazetteXError as e:
        logger.error(f"{e.kind.value}: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
