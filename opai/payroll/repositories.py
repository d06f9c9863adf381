"""
Read access to parameter versions and UF/UTM tables.
Provides one interface over the SQL store and an in-memory store used for
fixtures and what-if runs.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from opai.db.models import PayrollParameterVersion, FxUfRate, FxUtmRate
from opai.payroll.types import ParameterVersion

class ParameterRepository(ABC):
    """Base repository for legal parameters and currency indexes."""

    @abstractmethod
    def get_active_version(self) -> Optional[ParameterVersion]:
        pass

    @abstractmethod
    def get_version(self, version_id: str) -> Optional[ParameterVersion]:
        pass

    @abstractmethod
    def find_version_for_date(self, target: date) -> Optional[ParameterVersion]:
        """Version whose [effective_from, effective_until) contains target, latest start wins."""
        pass

    @abstractmethod
    def get_uf(self, target: date, exact: bool) -> Optional[Tuple[date, float]]:
        """UF record on target, or the latest one at or before it when exact is False."""
        pass

    @abstractmethod
    def get_utm(self, month: date, exact: bool) -> Optional[Tuple[date, float]]:
        pass

def _contains(version: ParameterVersion, target: date) -> bool:
    if version.effective_from > target:
        return False
    return version.effective_until is None or target < version.effective_until

def _lookup(table: Dict[date, float], target: date, exact: bool) -> Optional[Tuple[date, float]]:
    if target in table:
        return target, table[target]
    if exact:
        return None
    prior = [d for d in table if d <= target]
    if not prior:
        return None
    found = max(prior)
    return found, table[found]

class InMemoryParameterRepository(ParameterRepository):
    def __init__(
        self,
        versions: Optional[List[ParameterVersion]] = None,
        uf_rates: Optional[Dict[date, float]] = None,
        utm_rates: Optional[Dict[date, float]] = None,
    ):
        self.versions = {v.id: v for v in (versions or [])}
        self.uf_rates = dict(uf_rates or {})
        self.utm_rates = {d.replace(day=1): v for d, v in (utm_rates or {}).items()}

    def get_active_version(self) -> Optional[ParameterVersion]:
        return next((v for v in self.versions.values() if v.is_active), None)

    def get_version(self, version_id: str) -> Optional[ParameterVersion]:
        return self.versions.get(version_id)

    def find_version_for_date(self, target: date) -> Optional[ParameterVersion]:
        candidates = [v for v in self.versions.values() if _contains(v, target)]
        if not candidates:
            return None
        return max(candidates, key=lambda v: v.effective_from)

    def get_uf(self, target: date, exact: bool) -> Optional[Tuple[date, float]]:
        return _lookup(self.uf_rates, target, exact)

    def get_utm(self, month: date, exact: bool) -> Optional[Tuple[date, float]]:
        return _lookup(self.utm_rates, month, exact)

def _to_version(row: PayrollParameterVersion) -> ParameterVersion:
    return ParameterVersion(
        id=row.id,
        name=row.name,
        effective_from=row.effective_from,
        effective_until=row.effective_until,
        is_active=bool(row.is_active),
        data=row.data,
    )

class SqlParameterRepository(ParameterRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_active_version(self) -> Optional[ParameterVersion]:
        row = self.session.scalars(
            select(PayrollParameterVersion).where(PayrollParameterVersion.is_active.is_(True)).limit(1)
        ).first()
        return _to_version(row) if row else None

    def get_version(self, version_id: str) -> Optional[ParameterVersion]:
        row = self.session.get(PayrollParameterVersion, version_id)
        return _to_version(row) if row else None

    def find_version_for_date(self, target: date) -> Optional[ParameterVersion]:
        row = self.session.scalars(
            select(PayrollParameterVersion)
            .where(PayrollParameterVersion.effective_from <= target)
            .where(or_(
                PayrollParameterVersion.effective_until.is_(None),
                PayrollParameterVersion.effective_until > target,
            ))
            .order_by(PayrollParameterVersion.effective_from.desc())
            .limit(1)
        ).first()
        return _to_version(row) if row else None

    def get_uf(self, target: date, exact: bool) -> Optional[Tuple[date, float]]:
        stmt = select(FxUfRate)
        if exact:
            stmt = stmt.where(FxUfRate.date == target)
        else:
            stmt = stmt.where(FxUfRate.date <= target).order_by(FxUfRate.date.desc())
        row = self.session.scalars(stmt.limit(1)).first()
        return (row.date, float(row.value)) if row else None

    def get_utm(self, month: date, exact: bool) -> Optional[Tuple[date, float]]:
        stmt = select(FxUtmRate)
        if exact:
            stmt = stmt.where(FxUtmRate.month == month)
        else:
            stmt = stmt.where(FxUtmRate.month <= month).order_by(FxUtmRate.month.desc())
        row = self.session.scalars(stmt.limit(1)).first()
        return (row.month, float(row.value)) if row else None
