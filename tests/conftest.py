import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from heritage.db import apply_schema  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture()
def sqlite_engine():
    # StaticPool keeps one connection so the in-memory database survives
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    apply_schema(eng)
    return eng


@pytest.fixture()
def listing_html() -> str:
    return (FIXTURES / "listing.html").read_text(encoding="utf-8")


@pytest.fixture()
def detail_html() -> str:
    return (FIXTURES / "detail.html").read_text(encoding="utf-8")


@pytest.fixture()
def minimal_detail_html() -> str:
    return (FIXTURES / "detail_minimal.html").read_text(encoding="utf-8")
