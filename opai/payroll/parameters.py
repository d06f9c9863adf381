"""
Parameter loader.
Resolves the legal parameter version and the UF/UTM references used by a
computation. No caching: each call re-reads the store so the snapshot always
reflects the exact values used.
"""
import logging
from datetime import date
from typing import Optional, Tuple

from opai.core.utils import DateLike, to_date, month_start
from opai.payroll.errors import NoActiveVersion, VersionNotFound, NoVersionForDate, NoIndexAvailable
from opai.payroll.repositories import ParameterRepository
from opai.payroll.types import ParameterVersion, IndexValue, FxReferences

logger = logging.getLogger(__name__)

class ParameterLoader:
    def __init__(self, repository: ParameterRepository):
        self.repository = repository

    def load_active(self) -> ParameterVersion:
        version = self.repository.get_active_version()
        if version is None:
            raise NoActiveVersion()
        return version

    def load_by_id(self, version_id: str) -> ParameterVersion:
        version = self.repository.get_version(version_id)
        if version is None:
            raise VersionNotFound(version_id)
        return version

    def load_by_date(self, target: DateLike) -> ParameterVersion:
        d = to_date(target)
        version = self.repository.find_version_for_date(d)
        if version is None:
            raise NoVersionForDate(d)
        return version

    def load(self, version_id: Optional[str] = None) -> ParameterVersion:
        return self.load_by_id(version_id) if version_id else self.load_active()

    def resolve_uf(self, target: Optional[DateLike] = None) -> IndexValue:
        """UF for a date (default today), falling back to the closest prior record."""
        d = to_date(target) or date.today()
        found = self.repository.get_uf(d, exact=True)
        if found is None:
            found = self.repository.get_uf(d, exact=False)
            if found is None:
                raise NoIndexAvailable("UF", d)
            logger.warning("No UF for %s, using %s", d.isoformat(), found[0].isoformat())
        found_date, value = found
        return IndexValue(value=float(value), date=found_date.isoformat())

    def resolve_utm(self, month: Optional[DateLike] = None) -> IndexValue:
        """UTM for a month (default current), falling back to the closest prior month."""
        m = month_start(month)
        found = self.repository.get_utm(m, exact=True)
        if found is None:
            found = self.repository.get_utm(m, exact=False)
            if found is None:
                raise NoIndexAvailable("UTM", m)
            logger.warning("No UTM for %s, using %s", m.isoformat(), found[0].isoformat())
        found_month, value = found
        return IndexValue(value=float(value), date=found_month.isoformat())

    resolve_daily_index = resolve_uf
    resolve_monthly_index = resolve_utm

    def resolve_fx_references(
        self,
        imm_clp: float,
        uf_value: Optional[float] = None,
        uf_date: Optional[DateLike] = None,
        utm_value: Optional[float] = None,
        utm_month: Optional[DateLike] = None,
    ) -> FxReferences:
        """
        Explicit value+date pairs are used verbatim (what-if runs, snapshot
        replays). A date without a value only selects which record to resolve.
        The minimum wage always comes from the parameter version.
        """
        if uf_value and uf_date:
            uf = IndexValue(value=float(uf_value), date=to_date(uf_date).isoformat())
        else:
            uf = self.resolve_uf(uf_date)

        if utm_value and utm_month:
            utm = IndexValue(value=float(utm_value), date=month_start(utm_month).isoformat())
        else:
            utm = self.resolve_utm(utm_month)

        references = FxReferences(
            uf_clp=uf.value,
            uf_date=uf.date,
            utm_clp=utm.value,
            utm_month=utm.date,
            imm_clp=float(imm_clp),
        )
        logger.debug("Resolved references %s", references)
        return references

    def resolve(self, request) -> Tuple[ParameterVersion, FxReferences]:
        """Version and references for an engine input carrying the override fields."""
        version = self.load(request.params_version_id)
        references = self.resolve_fx_references(
            version.parameters.imm.value_clp,
            uf_value=request.uf_value,
            uf_date=request.uf_date,
            utm_value=request.utm_value,
            utm_month=request.utm_month,
        )
        logger.debug("Using parameter version %s (%s)", version.id, version.name)
        return version, references
