import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

# config is read at import time
os.environ.setdefault("DB_DIR", tempfile.mkdtemp(prefix="drill-db-"))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api import config
from api.database import Base
from api.services.session_store import InMemorySessionStore
from api.utils import json_dump
from models import Question, Section, SectionType, Test, TestMode, TestStatus

SAMPLE_SHEET = {
    "id": "aa-2",
    "name": "AA-2",
    "questions": [
        {"expression": "5+2-6+8", "answer": 9},
        {"expression": "1+1+2+2", "answer": 6},
        {"expression": "1+2+1+3", "answer": 7},
        {"expression": "4-2+2+1", "answer": 5},
    ],
}


def build_test(
    mode: TestMode = TestMode.PRACTICE,
    section_sizes: tuple[int, ...] = (3,),
    time_limit: int | None = None,
    test_id: str = "t1",
) -> Test:
    """Test whose question ``sN-qM`` has answer ``N * 100 + M``."""
    sections = []
    number = 0
    for s, size in enumerate(section_sizes):
        questions = []
        for q in range(size):
            number += 1
            questions.append(
                Question(
                    id=f"s{s}-q{q}",
                    section_id=f"s{s}",
                    question_number=number,
                    expression=f"{s * 100}+{q}",
                    correct_answer=s * 100 + q,
                )
            )
        sections.append(
            Section(
                id=f"s{s}",
                name=f"Section {s + 1}",
                type=SectionType.ADDITION_SUBTRACTION,
                questions=tuple(questions),
            )
        )
    if mode is TestMode.TEST and time_limit is None:
        time_limit = 3600
    return Test(
        id=test_id,
        name="Sample",
        mode=mode,
        practice_sheet_id="aa-2",
        sections=tuple(sections),
        time_limit=time_limit,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        status=TestStatus.NOT_STARTED,
    )


@pytest.fixture
def sheets_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "sheets"
    directory.mkdir()
    (directory / "aa-2.json").write_text(json_dump(SAMPLE_SHEET), encoding="utf-8")
    monkeypatch.setattr(config, "SHEETS_DIR", directory)
    return directory


@pytest.fixture
def session_factory(tmp_path: Path):
    import api.models.db  # noqa: F401

    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore(ttl_seconds=3600)
