import copy
import logging
from datetime import date

import pytest

from opai.core.audit import AuditLogger
from opai.db.session import make_engine, init_db
from opai.payroll.engine import PayrollEngine
from opai.payroll.parameters import ParameterLoader
from opai.payroll.repositories import InMemoryParameterRepository
from opai.payroll.seed import default_parameters
from opai.payroll.types import ParameterVersion
from sqlalchemy.orm import Session

# UF 40,000 keeps the arithmetic readable: pension cap 3,200,000, AFC cap 4,800,000
UF_RATES = {date(2026, 2, 1): 40000.0, date(2026, 2, 10): 40100.0}
UTM_RATES = {date(2026, 1, 1): 69000.0, date(2026, 2, 1): 69611.0}

PINNED_REFS = {"uf_date": "2026-02-01", "utm_month": "2026-02-01"}

def make_parameters():
    data = default_parameters()
    data["sis"]["employer_rate"] = 0.0188
    data["caps"] = {"pension_uf": 80, "health_uf": 80, "work_injury_uf": 80, "afc_uf": 120}
    data["work_injury"]["risk_levels"] = {"low": 0.0093, "medium": 0.0095, "high": 0.0134}
    return data

@pytest.fixture
def params_data():
    return make_parameters()

@pytest.fixture
def versions(params_data):
    january = copy.deepcopy(params_data)
    january["imm"] = {"value_clp": 480000}
    return [
        ParameterVersion(
            id="v-2026-02", name="Chile Febrero 2026",
            effective_from=date(2026, 2, 1), effective_until=date(2026, 3, 1),
            is_active=True, data=params_data,
        ),
        ParameterVersion(
            id="v-2026-01", name="Chile Enero 2026",
            effective_from=date(2026, 1, 1), effective_until=date(2026, 2, 1),
            is_active=False, data=january,
        ),
    ]

@pytest.fixture
def repository(versions):
    return InMemoryParameterRepository(versions, UF_RATES, UTM_RATES)

@pytest.fixture
def loader(repository):
    return ParameterLoader(repository)

@pytest.fixture
def audit_logger(tmp_path):
    return AuditLogger("test-tenant", str(tmp_path))

@pytest.fixture
def make_payroll_engine(repository, audit_logger):
    def _make(sink=None):
        return PayrollEngine(
            "test-tenant", repository, sink=sink,
            audit_logger=audit_logger, logger=logging.getLogger("opai.tests"),
        )
    return _make

@pytest.fixture
def db_session():
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    session = Session(engine)
    yield session
    session.close()
    engine.dispose()
