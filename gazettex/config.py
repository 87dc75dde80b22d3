"""
Configuration module for Gazette Extract.
"""

import json
import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from gazettex.model import ConfigError


class InputConfig(BaseModel):
    """
    Configuration for input.
    """

    upload_dir: str = "./uploads"  # Where uploaded gazettes are staged
    ocr_fallback: bool = False  # Whether to use OCR when a page has no text layer
    ocr_lang: str = "eng"  # OCR language
    parse_timeout_seconds: float = 30.0  # Time budget for PDF text extraction


class ParsingConfig(BaseModel):
    """
    Configuration for parsing.
    """

    max_name_words: int = 8  # Cap on deceased names that have no terminator
    terminator_phrases: List[str] = [  # Phrases that close a cause block
        "GAZETTE NOTICE",
    ]


class OutputConfig(BaseModel):
    """
    Configuration for output.
    """

    json_path: Optional[str] = None  # Scan result JSON path (disabled by default)
    csv_path: Optional[str] = None  # Extracted cases CSV path (disabled by default)
    pretty_json: bool = True  # Whether to pretty-print JSON


class LoggingConfig(BaseModel):
    """
    Configuration for logging.
    """

    level: str = "INFO"  # Logging level (DEBUG/INFO/WARN/ERROR)


class PerformanceConfig(BaseModel):
    """
    Configuration for performance.
    """

    parallel_io: bool = False  # Issue court lookups and record writes concurrently
    max_workers: int = 4  # Thread pool size when parallel_io is on


class MongoDBConfig(BaseModel):
    """
    Configuration for MongoDB integration.
    """

    enabled: bool = False  # Whether MongoDB integration is enabled
    uri: str = "mongodb://localhost:27017"  # MongoDB connection URI
    database: str = "registry"  # Database name
    courts_collection: str = "courts"
    records_collection: str = "records"
    gazettes_collection: str = "gazettes"
    scanlogs_collection: str = "scanlogs"


class Config(BaseModel):
    """
    Main configuration.
    """

    input: InputConfig = Field(default_factory=InputConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    mongodb: Optional[MongoDBConfig] = None  # MongoDB config (optional)


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Configuration object
    """
    if path:
        if not os.path.exists(path):
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            if path.endswith(".yaml") or path.endswith(".yml"):
                config_dict = yaml.safe_load(f) or {}
            elif path.endswith(".json"):
                config_dict = json.load(f)
            else:
                raise ConfigError(f"Unsupported configuration file format: {path}")

        try:
            return Config(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e
    else:
        # Try to load from default locations
        default_locations = [
            "./config.yaml",
            "./config.yml",
            "./config.json",
            os.path.expanduser("~/.config/gazettex/config.yaml"),
        ]

        for loc in default_locations:
            if os.path.exists(loc):
                return load_config(loc)

        return Config()
