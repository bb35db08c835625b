"""
Fixtures compartilhadas: banco SQLite em memória e provedor mock.
"""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SWEEP_DELAY_SECONDS", "0")
os.environ.setdefault("USE_MOCK_PROVIDER", "true")
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
from db import Base
from adapter_base import ProviderRegistry
from mock_adapter import MockJudicialProvider


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def provider():
    return MockJudicialProvider()


@pytest.fixture
def registry(provider):
    registry = ProviderRegistry()
    registry.register(("CO", "Colombia"), provider)
    return registry


@pytest.fixture
def firm(db_session):
    firm = models.Firm(name="Firma Teste", country="CO")
    db_session.add(firm)
    db_session.commit()
    return firm


@pytest.fixture
def make_case(db_session, firm):
    counter = {"n": 0}
    base = datetime(2025, 1, 1)

    def _make(filing_number="12345", status=models.CASE_STATUS_OPEN, case_firm=None, assigned_to_id=None):
        counter["n"] += 1
        case = models.Case(
            firm_id=(case_firm or firm).id,
            case_number=f"CASE-{counter['n']:03d}",
            filing_number=filing_number,
            status=status,
            assigned_to_id=assigned_to_id,
            created_at=base + timedelta(minutes=counter["n"]),
        )
        db_session.add(case)
        db_session.commit()
        return case

    return _make
