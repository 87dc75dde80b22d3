"""
MongoDB integration for Gazette Extract.

Collections keep the registry's field names (nameOfDeceased, statusAtGP,
volumeNo, ...); documents are converted to and from the snake_case dicts used
by the pipeline at this boundary.
"""

import datetime
import re
from typing import Dict, List, Optional, Tuple

import pymongo
from bson import ObjectId

from gazettex.config import MongoDBConfig
from gazettex.directory import CourtDirectory, RecordDirectory, ScanStore
from gazettex.log import get_logger
from gazettex.model import (
    STATUS_PENDING,
    STATUS_PUBLISHED,
    ConfigError,
    Court,
    Gazette,
    MutationError,
    PersistenceError,
    Record,
    ScanLog,
)

logger = get_logger(__name__)


def to_datetime(value) -> Optional[datetime.datetime]:
    """BSON stores datetimes only."""
    if value is None or isinstance(value, datetime.datetime):
        return value
    return datetime.datetime.combine(value, datetime.time())


def to_date(value) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def to_object_id(value: Optional[str]):
    """Use an ObjectId where the reference looks like one."""
    if value is not None and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def from_object_id(value) -> Optional[str]:
    return str(value) if value is not None else None


def from_court_doc(doc: Dict) -> Court:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name", ""),
        "level": doc.get("level", ""),
        "primary_email": doc.get("primaryEmail", ""),
        "secondary_emails": doc.get("secondaryEmails", []),
    }


def from_record_doc(doc: Dict) -> Record:
    return {
        "id": str(doc["_id"]),
        "no": doc.get("no"),
        "name_of_deceased": doc.get("nameOfDeceased", ""),
        "cause_no": doc.get("causeNo", ""),
        "court_station_id": from_object_id(doc.get("courtStation")),
        "status_at_gp": doc.get("statusAtGP", STATUS_PENDING),
        "volume_no": doc.get("volumeNo", ""),
        "date_published": to_date(doc.get("datePublished")),
    }


def to_gazette_doc(gazette: Gazette) -> Dict:
    """
    Convert a gazette to a MongoDB document.

    Args:
        gazette: Gazette to convert

    Returns:
        MongoDB document
    """
    now = datetime.datetime.utcnow()
    return {
        "fileName": gazette["file_name"],
        "volumeNo": gazette["volume_no"],
        "datePublished": to_datetime(gazette["date_published"]),
        "cases": [
            {
                "causeNo": case["cause_no"],
                "courtName": case["court_name"],
                "courtStation": to_object_id(case.get("court_station_id")),
                "nameOfDeceased": case["name_of_deceased"],
                "volumeNo": case["volume_no"],
                "datePublished": to_datetime(case["date_published"]),
                "status": case["status"],
                "record": to_object_id(case.get("record_id")),
            }
            for case in gazette["cases"]
        ],
        "totalRecords": gazette["total_records"],
        "publishedCount": gazette["published_count"],
        "uploadedBy": to_object_id(gazette["uploaded_by"]),
        "createdAt": now,
        "updatedAt": now,
    }


def from_gazette_doc(doc: Dict) -> Gazette:
    return {
        "id": str(doc["_id"]),
        "file_name": doc.get("fileName", ""),
        "volume_no": doc.get("volumeNo", ""),
        "date_published": to_date(doc.get("datePublished")),
        "cases": [
            {
                "cause_no": case.get("causeNo", ""),
                "court_name": case.get("courtName", ""),
                "court_station_id": from_object_id(case.get("courtStation")),
                "name_of_deceased": case.get("nameOfDeceased", ""),
                "volume_no": case.get("volumeNo", doc.get("volumeNo", "")),
                "date_published": to_date(case.get("datePublished", doc.get("datePublished"))),
                "status": case.get("status", STATUS_PENDING),
                "record_id": from_object_id(case.get("record")),
            }
            for case in doc.get("cases", [])
        ],
        "total_records": doc.get("totalRecords", 0),
        "published_count": doc.get("publishedCount", 0),
        "uploaded_by": from_object_id(doc.get("uploadedBy")),
    }


def to_scan_log_doc(scan_log: ScanLog) -> Dict:
    now = datetime.datetime.utcnow()
    return {
        "fileName": scan_log["file_name"],
        "totalRecords": scan_log["total_records"],
        "publishedCount": scan_log["published_count"],
        "remarks": scan_log.get("remarks", ""),
        "uploadedBy": to_object_id(scan_log["uploaded_by"]),
        "volumeNo": scan_log.get("volume_no"),
        "datePublished": to_datetime(scan_log.get("date_published")),
        "dateScanned": scan_log.get("date_scanned") or now,
        "createdAt": now,
        "updatedAt": now,
    }


def from_scan_log_doc(doc: Dict) -> ScanLog:
    return {
        "id": str(doc["_id"]),
        "file_name": doc.get("fileName", ""),
        "total_records": doc.get("totalRecords", 0),
        "published_count": doc.get("publishedCount", 0),
        "remarks": doc.get("remarks", ""),
        "uploaded_by": from_object_id(doc.get("uploadedBy")),
        "volume_no": doc.get("volumeNo"),
        "date_published": to_date(doc.get("datePublished")),
        "date_scanned": doc.get("dateScanned"),
    }


def name_regex(name: str) -> str:
    """Anchored pattern matching a normalized name with any inner spacing."""
    return r"^\s*" + r"\s+".join(re.escape(word) for word in name.split()) + r"\s*$"


class MongoCourtDirectory(CourtDirectory):
    """Court directory backed by the courts collection."""

    def __init__(self, collection):
        self.collection = collection

    def find_court_by_name(self, name_fragment: str) -> Optional[Court]:
        doc = self.collection.find_one(
            {"name": {"$regex": re.escape(name_fragment.strip()), "$options": "i"}}
        )
        return from_court_doc(doc) if doc else None


class MongoRecordDirectory(RecordDirectory):
    """Record directory backed by the records collection."""

    def __init__(self, collection):
        self.collection = collection

    def find_records_by_normalized_name(self, name: str) -> List[Record]:
        if not name.split():
            return []
        cursor = self.collection.find(
            {"nameOfDeceased": {"$regex": name_regex(name), "$options": "i"}}
        ).sort("no", pymongo.ASCENDING)
        return [from_record_doc(doc) for doc in cursor]

    def update_record_status(self, record_id: str, update: Dict) -> None:
        # The filter keeps Published records from being rewritten
        result = self.collection.update_one(
            {"_id": to_object_id(record_id), "statusAtGP": {"$ne": STATUS_PUBLISHED}},
            {"$set": {
                "statusAtGP": update["status_at_gp"],
                "volumeNo": update["volume_no"],
                "datePublished": to_datetime(update["date_published"]),
                "updatedAt": datetime.datetime.utcnow(),
            }},
        )
        if result.matched_count == 0:
            raise MutationError(f"Record {record_id} missing or already published")


class MongoScanStore(ScanStore):
    """Scan store backed by the gazettes and scanlogs collections."""

    def __init__(self, gazettes, scan_logs):
        self.gazettes = gazettes
        self.scan_logs = scan_logs

    def save_gazette(self, gazette: Gazette) -> str:
        return str(self.gazettes.insert_one(to_gazette_doc(gazette)).inserted_id)

    def save_scan_log(self, scan_log: ScanLog) -> str:
        return str(self.scan_logs.insert_one(to_scan_log_doc(scan_log)).inserted_id)

    def list_gazettes(self) -> List[Gazette]:
        cursor = self.gazettes.find().sort("createdAt", pymongo.DESCENDING)
        return [from_gazette_doc(doc) for doc in cursor]

    def get_gazette(self, gazette_id: str) -> Optional[Gazette]:
        doc = self.gazettes.find_one({"_id": to_object_id(gazette_id)})
        return from_gazette_doc(doc) if doc else None

    def list_scan_logs(self) -> List[ScanLog]:
        cursor = self.scan_logs.find().sort("createdAt", pymongo.DESCENDING)
        return [from_scan_log_doc(doc) for doc in cursor]


def get_database(cfg: MongoDBConfig):
    """
    Connect to the configured database.

    Args:
        cfg: MongoDB configuration

    Returns:
        pymongo Database
    """
    if not cfg.enabled:
        raise ConfigError("MongoDB integration is disabled in configuration")

    try:
        client = pymongo.MongoClient(cfg.uri, retryWrites=True)
        return client[cfg.database]
    except Exception as e:
        logger.error(f"Error connecting to MongoDB: {e}")
        raise PersistenceError(f"Error connecting to MongoDB: {e}") from e


def open_directories(cfg: MongoDBConfig) -> Tuple[MongoCourtDirectory, MongoRecordDirectory, MongoScanStore]:
    """
    Build the pipeline collaborators over one database.

    Args:
        cfg: MongoDB configuration

    Returns:
        Tuple of (courts, records, store)
    """
    db = get_database(cfg)
    return (
        MongoCourtDirectory(db[cfg.courts_collection]),
        MongoRecordDirectory(db[cfg.records_collection]),
        MongoScanStore(db[cfg.gazettes_collection], db[cfg.scanlogs_collection]),
    )


def setup_mongodb(cfg: MongoDBConfig) -> None:
    """
    Create the indexes the scan pipeline relies on.

    Args:
        cfg: MongoDB configuration
    """
    db = get_database(cfg)
    logger.info("Setting up MongoDB indexes")

    try:
        db[cfg.courts_collection].create_index([("name", pymongo.ASCENDING)], unique=True)
        db[cfg.records_collection].create_index([("nameOfDeceased", pymongo.ASCENDING)])
        db[cfg.records_collection].create_index([("statusAtGP", pymongo.ASCENDING)])
        db[cfg.gazettes_collection].create_index([("createdAt", pymongo.DESCENDING)])
        db[cfg.gazettes_collection].create_index([("volumeNo", pymongo.ASCENDING)])
        db[cfg.scanlogs_collection].create_index([("createdAt", pymongo.DESCENDING)])
    except Exception as e:
        logger.error(f"Error setting up MongoDB: {e}")
        raise PersistenceError(f"Error setting up MongoDB: {e}") from e

    logger.info("MongoDB setup complete")
