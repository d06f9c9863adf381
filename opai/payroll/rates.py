"""
Rate lookups shared by the employer cost calculator and the payslip simulator.
Category keys (pension fund, risk tier) are validated here: an unknown key is
an input error, never a silent zero rate.
"""
from typing import Dict, Optional, Tuple

from opai.core.config import settings
from opai.payroll.errors import InvalidPayrollInput
from opai.payroll.types import PayrollParameters, WorkInjuryOverride

def afp_commission_rate(params: PayrollParameters, afp_name: str) -> float:
    # params store lowercase keys ("modelo"), callers may send "Modelo"
    commissions = params.afp.commissions
    key = next((k for k in commissions if k.lower() == afp_name.strip().lower()), None)
    if key is None:
        raise InvalidPayrollInput("afp_name", afp_name, commissions.keys())
    return commissions[key].commission_rate

def health_rate(params: PayrollParameters, health_system: str, health_plan_pct: float) -> float:
    if health_system == "fonasa":
        return params.health.fonasa.rate
    min_rate = params.health.isapre.min_rate
    if health_plan_pct < min_rate:
        raise InvalidPayrollInput("health_plan_pct", health_plan_pct, [f">= {min_rate}"])
    return health_plan_pct

def work_injury_rates(
    params: PayrollParameters,
    risk: str,
    override: Optional[WorkInjuryOverride] = None,
) -> Tuple[float, float, float]:
    """Return (base_rate, additional_rate, total_rate) for Ley 16.744 contributions.

    Precedence: explicit total override, override components, the version's
    base rate, the version's risk tier, then the legal basic rate.
    """
    table = params.work_injury
    if table.risk_levels and risk not in table.risk_levels:
        raise InvalidPayrollInput("work_injury_risk", risk, table.risk_levels.keys())

    base_rate = table.base_rate if table.base_rate is not None else settings.FALLBACK_WORK_INJURY_RATE

    if override is not None and override.total_rate is not None:
        total = override.total_rate
        return base_rate, total - base_rate, total

    if override is not None and any(
        r is not None for r in (override.basic_rate, override.additional_rate, override.extra_rate)
    ):
        basic = override.basic_rate if override.basic_rate is not None else base_rate
        additional = (override.additional_rate or 0.0) + (override.extra_rate or 0.0)
        return basic, additional, basic + additional

    if table.base_rate is not None:
        total = table.base_rate
    elif risk in table.risk_levels:
        total = table.risk_levels[risk]
    else:
        total = settings.FALLBACK_WORK_INJURY_RATE
    return base_rate, total - base_rate, total

def gratification_amount(params: PayrollParameters, base: float, imm_clp: float) -> float:
    """Art. 50 CT: 25% of remuneration, capped at 4.75 IMM a year."""
    g = params.gratification
    monthly_cap = imm_clp * g.annual_cap_imm_multiple / 12
    return min(base * g.monthly_rate, monthly_cap)

def family_allowance(
    params: PayrollParameters,
    total_taxable: float,
    num_dependents: int,
    has_maternal: bool = False,
    has_invalidity: bool = False,
) -> Dict[str, float]:
    """Asignacion familiar by IPS income tranche."""
    empty = {"per_dependent": 0.0, "maternal": 0.0, "invalidity": 0.0, "total": 0.0}
    fa = params.family_allowance
    if not fa.enabled or num_dependents <= 0:
        return empty

    tranche = next(
        (t for t in fa.tranches
         if total_taxable >= t.from_clp and (t.to_clp is None or total_taxable <= t.to_clp)),
        None,
    )
    if tranche is None:
        return empty

    per_dependent = tranche.amount_per_dependent * num_dependents
    maternal = tranche.amount_maternal if has_maternal else 0.0
    invalidity = tranche.amount_invalidity if has_invalidity else 0.0
    return {
        "per_dependent": per_dependent,
        "maternal": maternal,
        "invalidity": invalidity,
        "total": per_dependent + maternal + invalidity,
    }
