from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from portquiz.content_loader import QuizContent  # noqa: E402
from portquiz.list_store import MemoryListStore  # noqa: E402
from portquiz.models import ReferenceListItem  # noqa: E402
from portquiz.progress import MemoryHistoryStore  # noqa: E402

SAMPLE_PORTS: list[dict[str, object]] = [
    {"CITY": "Rotterdam", "COUNTRY": "Netherlands", "STATE": "South Holland", "LATITUDE": 51.9, "LONGITUDE": 4.5},
    {"CITY": "Amsterdam", "COUNTRY": "Netherlands", "STATE": "North Holland", "LATITUDE": 52.4, "LONGITUDE": 4.9},
    {"CITY": "Hamburg", "COUNTRY": "Germany", "STATE": "Hamburg", "LATITUDE": 53.5, "LONGITUDE": 10.0},
    {"CITY": "Bremerhaven", "COUNTRY": "Germany", "STATE": "Bremen", "LATITUDE": 53.55, "LONGITUDE": 8.58},
    {"CITY": "Antwerpen", "COUNTRY": "Belgium", "STATE": "", "LATITUDE": 51.22, "LONGITUDE": 4.4},
    {"CITY": "Shanghai", "COUNTRY": "China", "STATE": "Shanghai", "LATITUDE": 31.22, "LONGITUDE": 121.46},
    {"CITY": "Ningbo", "COUNTRY": "China", "STATE": "Zhejiang", "LATITUDE": 29.88, "LONGITUDE": 121.55},
    {"CITY": "Qingdao", "COUNTRY": "China", "STATE": "Shandong", "LATITUDE": 36.06, "LONGITUDE": 120.38},
    {"CITY": "Los Angeles", "COUNTRY": "United States", "STATE": "California", "LATITUDE": 34.05, "LONGITUDE": -118.24},
    {"CITY": "Houston", "COUNTRY": "U.S.A.", "STATE": "Texas", "LATITUDE": 29.76, "LONGITUDE": -95.36},
    {"CITY": "Geraldton", "COUNTRY": "Australia", "STATE": "Western Australia", "LATITUDE": -28.78, "LONGITUDE": 114.61},
    {"CITY": "Sydney", "COUNTRY": "Australia", "STATE": "New South Wales", "LATITUDE": -33.87, "LONGITUDE": 151.21},
    {"CITY": "Hamburg", "COUNTRY": "Germany", "STATE": "Hamburg", "LATITUDE": 53.5, "LONGITUDE": 10.0},
]

SAMPLE_REFERENCE = [
    ReferenceListItem(number=1, port_name="Rotterdam", country="Netherlands", region="Europe"),
    ReferenceListItem(number=2, port_name="Shanghai", country="China", region="Asia"),
    ReferenceListItem(number=3, port_name="Geralton", country="Australia", region="Oceania"),
    ReferenceListItem(number=4, port_name="Los Angeles", country="USA", region="North America"),
]

SAMPLE_MAPPINGS = {"geralton|australia": "geraldton|australia"}


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide per-test temporary directory path inside the workspace.

    Overrides pytest's builtin ``tmp_path`` so temporary files stay under
    ``.tmp_pytest/`` in the project directory.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def sample_content() -> QuizContent:
    return QuizContent(
        raw_ports=[dict(row) for row in SAMPLE_PORTS],
        reference_items=list(SAMPLE_REFERENCE),
        name_mappings=dict(SAMPLE_MAPPINGS),
    )


@pytest.fixture
def history_store() -> MemoryHistoryStore:
    return MemoryHistoryStore()


@pytest.fixture
def list_store() -> MemoryListStore:
    return MemoryListStore()
