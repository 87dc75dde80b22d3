"""
Pytest configuration and fixtures.
"""

import datetime
import os
import tempfile
from typing import List

import pytest

from gazettex.config import Config
from gazettex.directory import InMemoryCourtDirectory, InMemoryRecordDirectory, InMemoryScanStore
from gazettex.model import Court, Record

SECTIONED_TEXT = (
    "THE KENYA GAZETTE Published by Authority of the Republic of Kenya "
    "Vol. CXXVI—No. 45 NAIROBI, 12th March, 2024 Price Sh. 60 "
    "GAZETTE NOTICE NO. 3001 THE LAW OF SUCCESSION ACT "
    "IN THE HIGH COURT OF KENYA AT NAIROBI SUCCESSION CAUSE NO. 123 OF 2024 "
    "PETITION for letters of administration intestate to the estate of MARY ATIENO, "
    "late of Nairobi, who died on 1st January, 2024, has been filed in this registry. "
    "CAUSE NO. 124/2024 PETITION for letters of administration to the estate of "
    "JOHN KAMAU DOE, late of Kiambu, has been filed. "
    "GAZETTE NOTICE NO. 3002 IN THE HIGH COURT OF KENYA AT MOMBASA SUCCESSION "
    "CAUSE NO. 77 OF 2024 PETITION for letters of administration to the estate of "
    "Jane Wanjiru, who died at Mombasa, has been filed."
)

FLAT_TEXT = (
    "Vol. A No. 45 Published on 3rd June 2023 "
    "Cause No. 10/2023 HIGH COURT AT NAKURU estate of PETER OTIENO – deceased "
    "Cause No. 11/2023 HIGH COURT AT ELDORET estate of ANN CHEPKOECH deceased "
    "Cause No. 12/2023 notice without a name"
)


@pytest.fixture
def sample_config():
    """Return a sample configuration."""
    return Config()


@pytest.fixture
def sectioned_text() -> str:
    """Gazette text grouped under court-section headers."""
    return SECTIONED_TEXT


@pytest.fixture
def flat_text() -> str:
    """Gazette text with the court named inside each block."""
    return FLAT_TEXT


@pytest.fixture
def sample_courts() -> List[Court]:
    """Return a list of sample courts."""
    return [
        {"id": "court-1", "name": "NAIROBI HIGH COURT", "level": "High Court",
         "primary_email": "nairobi@court.go.ke", "secondary_emails": []},
        {"id": "court-2", "name": "MOMBASA HIGH COURT", "level": "High Court",
         "primary_email": "mombasa@court.go.ke", "secondary_emails": []},
        {"id": "court-3", "name": "NAIROBI CHILDREN'S COURT", "level": "Children’s Court",
         "primary_email": "children@court.go.ke", "secondary_emails": []},
    ]


@pytest.fixture
def sample_records() -> List[Record]:
    """Return a list of sample registry records."""
    return [
        {"id": "rec-1", "no": 1, "name_of_deceased": "Mary Atieno", "cause_no": "123/2024",
         "court_station_id": "court-1", "status_at_gp": "Pending", "volume_no": "", "date_published": None},
        {"id": "rec-2", "no": 2, "name_of_deceased": "JANE  WANJIRU", "cause_no": "77/2024",
         "court_station_id": "court-2", "status_at_gp": "Published", "volume_no": "CXXV—No. 10",
         "date_published": datetime.date(2023, 11, 3)},
        {"id": "rec-3", "no": 3, "name_of_deceased": "Samuel Otieno", "cause_no": "5/2024",
         "court_station_id": "court-1", "status_at_gp": "Pending", "volume_no": "", "date_published": None},
    ]


@pytest.fixture
def courts(sample_courts):
    return InMemoryCourtDirectory(sample_courts)


@pytest.fixture
def records(sample_records):
    return InMemoryRecordDirectory(sample_records)


@pytest.fixture
def store():
    return InMemoryScanStore()


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield tmp_dir


@pytest.fixture
def temp_pdf():
    """Create a temporary upload file."""
    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as tmp:
        tmp.write(b"%PDF-1.4\n%%EOF")
        tmp_path = tmp.name

    yield tmp_path

    if os.path.exists(tmp_path):
        os.unlink(tmp_path)
