"""
Monthly employer cost for one worker (used by CPQ quoting).

Composes, in order: capped contribution bases, legal gratification, employer
AFC/SIS/work-injury contributions, non-taxable allowances and provisions.
Also estimates the worker's deductions and net salary for the cost-to-net
ratio; that estimate is for display, payslips come from ``simulate_payslip``.
"""
import logging
from typing import Any, Dict, Union

from opai.core.config import settings
from opai.core.utils import round_money, round_rate, utc_now_iso
from opai.payroll.parameters import ParameterLoader
from opai.payroll.rates import (
    afp_commission_rate, health_rate, work_injury_rates, gratification_amount, family_allowance,
)
from opai.payroll.snapshot import caps_in_clp, snapshot_for
from opai.payroll.tax import calculate_tax
from opai.payroll.types import EmployerCostInput

logger = logging.getLogger(__name__)

def compute_employer_cost(
    request: Union[EmployerCostInput, Dict[str, Any]],
    loader: ParameterLoader,
) -> Dict[str, Any]:
    inp = EmployerCostInput.model_validate(request)
    assumptions = inp.assumptions

    version, references = loader.resolve(inp)
    params = version.parameters
    caps = caps_in_clp(params, references.uf_clp)

    # Validate category keys before any arithmetic
    afp_commission = afp_commission_rate(params, inp.afp_name)
    wi_base_rate, wi_additional_rate, wi_total_rate = work_injury_rates(
        params, inp.work_injury_risk, assumptions.work_injury_override
    )

    # Remuneration subject to contributions
    base_salary = inp.base_salary_clp
    hour_value = base_salary / settings.DEFAULT_TOTAL_DAYS_MONTH / settings.HOURS_PER_DAY
    overtime = round_money(inp.overtime_hours_50 * hour_value * settings.OVERTIME_50_FACTOR)
    commissions = round_money(inp.commissions)
    salary = round_money(base_salary + overtime + commissions)

    imponible_base = min(salary, caps["pension"])

    gratification = 0.0
    if assumptions.include_gratification:
        gratification = round_money(gratification_amount(params, base_salary, references.imm_clp))

    total_taxable = round_money(salary + gratification)
    afc_base = min(total_taxable, caps["afc"])

    # Non-taxable items
    transport = round_money(inp.transport_allowance)
    meal = round_money(inp.meal_allowance)
    family = round_money(family_allowance(
        params, total_taxable, inp.num_dependents, inp.has_maternal_allowance
    )["total"])
    total_non_taxable = round_money(transport + meal + family)

    # Employer contributions
    afc_employer_rates = params.afc.for_contract(inp.contract_type).employer
    afc_cic = round_money(afc_base * afc_employer_rates.cic_rate)
    afc_fcs = round_money(afc_base * afc_employer_rates.fcs_rate)
    afc_total = round_money(afc_cic + afc_fcs)

    sis = round_money(imponible_base * params.sis.employer_rate)
    work_injury = round_money(imponible_base * wi_total_rate)

    direct_cost = round_money(total_taxable + total_non_taxable + sis + afc_total + work_injury)

    vacation_provision = 0.0
    if assumptions.include_vacation_provision:
        vacation_provision = round_money(direct_cost * assumptions.vacation_provision_pct)
    severance_provision = 0.0
    if assumptions.include_severance_provision:
        severance_provision = round_money(direct_cost * assumptions.severance_provision_pct)

    total_cost = round_money(direct_cost + vacation_provision + severance_provision)

    # Worker-side estimate
    afp_total_rate = params.afp.base_rate + afp_commission
    afp_worker = round_money(imponible_base * afp_total_rate)
    worker_health_rate = health_rate(params, inp.health_system, inp.health_plan_pct)
    health_worker = round_money(imponible_base * worker_health_rate)
    afc_worker_rate = params.afc.for_contract(inp.contract_type).worker.total_rate
    afc_worker = round_money(afc_base * afc_worker_rate)

    taxable_base = max(0.0, salary - afp_worker - health_worker - afc_worker)
    tax = round_money(calculate_tax(taxable_base, params.tax_brackets))

    total_deductions = round_money(afp_worker + health_worker + afc_worker + tax)
    net_salary = round_money(salary + total_non_taxable - total_deductions)
    cost_to_net_ratio = round_money(total_cost / net_salary) if net_salary > 0 else 0.0

    logger.info(
        "Employer cost computed: version=%s base=%s total=%s",
        version.id, base_salary, total_cost,
    )

    return {
        "monthly_employer_cost_clp": total_cost,
        "breakdown": {
            "base_salary": round_money(base_salary),
            "gratification": gratification,
            "overtime": overtime,
            "commissions": commissions,
            "total_taxable_income": total_taxable,
            "imponible_base": round_money(imponible_base),
            "afc_base": round_money(afc_base),

            "transport_allowance": transport,
            "meal_allowance": meal,
            "family_allowance": family,
            "total_non_taxable_income": total_non_taxable,

            "sis_employer": sis,
            "afc_employer": {
                "cic": afc_cic,
                "fcs": afc_fcs,
                "total": afc_total,
            },
            "work_injury_employer": {
                "base_rate": round_rate(wi_base_rate),
                "additional_rate": round_rate(wi_additional_rate),
                "total_rate": round_rate(wi_total_rate),
                "amount": work_injury,
            },

            "vacation_provision": vacation_provision,
            "severance_provision": severance_provision,
            "subtotal_direct_cost": direct_cost,
            "total_cost": total_cost,
        },
        "worker_breakdown_estimate": {
            "afp": {
                "base_rate": params.afp.base_rate,
                "commission_rate": afp_commission,
                "total_rate": round_rate(afp_total_rate),
                "amount": afp_worker,
            },
            "health": health_worker,
            "afc": afc_worker,
            "taxable_base": round_money(taxable_base),
            "tax": tax,
            "total_deductions": total_deductions,
        },
        "worker_net_salary_estimate": net_salary,
        "cost_to_net_ratio": cost_to_net_ratio,
        "parameters_snapshot": snapshot_for(version, references),
        "computed_at": utc_now_iso(),
    }
