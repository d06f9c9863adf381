import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Float, Date, DateTime, Boolean, JSON, Text, Index
)
from opai.db.session import Base

def _uuid():
    return str(uuid.uuid4())

def _utcnow():
    return datetime.now(timezone.utc)

class PayrollParameterVersion(Base):
    """Effective-dated bundle of legal rates. Written by authoring tools, read-only here."""
    __tablename__ = "payroll_parameter_versions"
    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    effective_from = Column(Date, nullable=False, index=True)
    effective_until = Column(Date, nullable=True)
    is_active = Column(Boolean, default=False, index=True)
    data = Column(JSON, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

class FxUfRate(Base):
    __tablename__ = "fx_uf_rates"
    date = Column(Date, primary_key=True)
    value = Column(Float, nullable=False)
    source = Column(String, default="SBIF")
    fetched_at = Column(DateTime(timezone=True), default=_utcnow)

class FxUtmRate(Base):
    __tablename__ = "fx_utm_rates"
    month = Column(Date, primary_key=True)  # always the 1st of the month
    value = Column(Float, nullable=False)
    source = Column(String, default="SII")
    fetched_at = Column(DateTime(timezone=True), default=_utcnow)

class PayrollSimulation(Base):
    """Append-only audit record of one computation."""
    __tablename__ = "payroll_simulations"
    id = Column(String, primary_key=True, default=_uuid)
    tenant_id = Column(String, nullable=True)
    simulation_type = Column(String, nullable=False)  # 'payslip' / 'employer_cost'
    params_version_id = Column(String, nullable=False)
    inputs = Column(JSON, default={})
    results = Column(JSON, default={})
    parameters_snapshot = Column(JSON, default={})
    created_by_user_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

Index("ix_payroll_simulations_tenant_created", PayrollSimulation.tenant_id, PayrollSimulation.created_at)
