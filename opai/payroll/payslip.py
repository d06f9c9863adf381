"""
Payslip simulation for one pay period.

Legal calculation order:
  1. Taxable earnings (proportional base, holiday surcharge, gratification,
     overtime, commissions, other taxable allowances)
  2. Non-taxable earnings (transport, meal, family allowance, other)
  3. Social security deductions on capped bases (AFP, health, AFC)
  4. APV regime B, which lowers the taxable base
  5. Impuesto Unico de Segunda Categoria
  6. Judicial and voluntary deductions
  7. Employer contributions (SIS, AFC employer, work injury)

This module only computes. Storing the simulation is a separate step, see
``opai.payroll.persistence``.
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
from opai.payroll.tax import calculate_tax, find_tax_bracket_index
from opai.payroll.types import PayslipInput

logger = logging.getLogger(__name__)

def simulate_payslip(
    request: Union[PayslipInput, Dict[str, Any]],
    loader: ParameterLoader,
) -> Dict[str, Any]:
    inp = PayslipInput.model_validate(request)

    version, references = loader.resolve(inp)
    params = version.parameters
    caps = caps_in_clp(params, references.uf_clp)

    afp_commission = afp_commission_rate(params, inp.afp_name)
    wi_base_rate, wi_additional_rate, wi_total_rate = work_injury_rates(
        params, inp.work_injury_risk, inp.work_injury_override
    )

    # Worked days: only unpaid leave is discounted; sick leave and vacation are paid
    total_days = inp.total_days_month
    if inp.worked_days is not None:
        worked_days = inp.worked_days
    else:
        worked_days = max(0.0, total_days - inp.absence_days.unpaid_leave)

    # ── Taxable earnings ───────────────────────────────
    base_salary = inp.base_salary_clp
    proportional_base = round_money(base_salary / total_days * worked_days)

    # Art. 32 CT: hour value always on a 30-day, 8-hour month
    hour_value = base_salary / settings.DEFAULT_TOTAL_DAYS_MONTH / settings.HOURS_PER_DAY
    holiday_surcharge = round_money(inp.holiday_hours_worked * hour_value * settings.HOLIDAY_SURCHARGE_FACTOR)

    if inp.gratification_clp is not None:
        gratification = round_money(inp.gratification_clp)
    elif inp.include_gratification:
        gratification = round_money(gratification_amount(
            params, proportional_base + holiday_surcharge, references.imm_clp
        ))
    else:
        gratification = 0.0

    overtime_50 = round_money(inp.overtime_hours_50 * hour_value * settings.OVERTIME_50_FACTOR)
    overtime_100 = round_money(inp.overtime_hours_100 * hour_value * settings.OVERTIME_100_FACTOR)
    commissions = round_money(inp.commissions)
    other_taxable = round_money(inp.other_taxable_allowances)

    total_taxable = round_money(
        proportional_base + holiday_surcharge + gratification
        + overtime_50 + overtime_100 + commissions + other_taxable
    )

    # ── Non-taxable earnings ───────────────────────────
    allowances = inp.non_taxable_allowances
    family = family_allowance(
        params, total_taxable, inp.num_dependents,
        inp.has_maternal_allowance, inp.has_invalidity_allowance,
    )
    transport = round_money(allowances.transport)
    meal = round_money(allowances.meal)
    family_amount = round_money(allowances.family + family["per_dependent"] + family["invalidity"])
    maternal_amount = round_money(allowances.maternal + family["maternal"])
    other_non_taxable = round_money(allowances.other)
    total_non_taxable = round_money(transport + meal + family_amount + maternal_amount + other_non_taxable)

    gross_salary = round_money(total_taxable + total_non_taxable)

    # ── Capped bases ───────────────────────────────────
    base_pension = min(total_taxable, caps["pension"])
    base_health = min(total_taxable, caps["health"])
    base_afc = min(total_taxable, caps["afc"])

    # ── Social security ────────────────────────────────
    afp_base_rate = params.afp.base_rate
    afp_total_rate = afp_base_rate + afp_commission
    afp_amount = round_money(base_pension * afp_total_rate)

    worker_health_rate = health_rate(params, inp.health_system, inp.health_plan_pct)
    health_amount = round_money(base_health * worker_health_rate)

    afc_worker = params.afc.for_contract(inp.contract_type).worker
    afc_worker_amount = round_money(base_afc * afc_worker.total_rate)

    apv_amount = round_money(inp.additional_deductions.apv)

    # ── Tax ────────────────────────────────────────────
    taxable_base = max(0.0, round_money(
        total_taxable - afp_amount - health_amount - afc_worker_amount - apv_amount
    ))
    tax_amount = round_money(calculate_tax(taxable_base, params.tax_brackets))
    bracket_index = find_tax_bracket_index(taxable_base, params.tax_brackets)
    bracket = params.tax_brackets[bracket_index] if params.tax_brackets else None

    total_legal = round_money(afp_amount + health_amount + afc_worker_amount + apv_amount + tax_amount)

    # ── Judicial and voluntary ─────────────────────────
    extra = inp.additional_deductions
    pension_alimenticia = round_money(extra.pension_alimenticia)
    loan = round_money(extra.loan)
    advance = round_money(extra.advance)
    caja_loan = round_money(extra.caja_loan)
    other_deductions = round_money(extra.other)
    voluntary_total = round_money(pension_alimenticia + loan + advance + caja_loan + other_deductions)

    total_deductions = round_money(total_legal + voluntary_total)
    net_salary = round_money(gross_salary - total_deductions)

    # ── Employer contributions ─────────────────────────
    sis_rate = params.sis.employer_rate
    sis_amount = round_money(base_pension * sis_rate)

    afc_employer = params.afc.for_contract(inp.contract_type).employer
    afc_employer_cic = round_money(base_afc * afc_employer.cic_rate)
    afc_employer_fcs = round_money(base_afc * afc_employer.fcs_rate)
    afc_employer_total = round_money(afc_employer_cic + afc_employer_fcs)

    work_injury_amount = round_money(base_pension * wi_total_rate)

    employer_contributions = round_money(sis_amount + afc_employer_total + work_injury_amount)
    total_employer_cost = round_money(gross_salary + employer_contributions)

    logger.info(
        "Payslip simulated: version=%s gross=%s net=%s",
        version.id, gross_salary, net_salary,
    )

    return {
        "simulation_id": None,

        "total_taxable_income": total_taxable,
        "total_non_taxable_income": total_non_taxable,
        "gross_salary": gross_salary,
        "total_deductions": total_deductions,
        "net_salary": net_salary,
        "total_employer_cost": total_employer_cost,

        "worked_days": worked_days,
        "total_days_month": total_days,
        "hour_value": round_money(hour_value),

        "haberes": {
            "base_salary": proportional_base,
            "gratification": gratification,
            "holiday_surcharge": holiday_surcharge,
            "overtime_50": overtime_50,
            "overtime_100": overtime_100,
            "commissions": commissions,
            "other_taxable": other_taxable,
            "total_taxable": total_taxable,

            "transport": transport,
            "meal": meal,
            "family_allowance": family_amount,
            "maternal_allowance": maternal_amount,
            "other_non_taxable": other_non_taxable,
            "total_non_taxable": total_non_taxable,

            "gross_salary": gross_salary,
        },

        "deductions": {
            "afp": {
                "base_rate": afp_base_rate,
                "commission_rate": afp_commission,
                "total_rate": round_rate(afp_total_rate),
                "base_imponible": round_money(base_pension),
                "amount": afp_amount,
            },
            "health": {
                "rate": worker_health_rate,
                "base_imponible": round_money(base_health),
                "amount": health_amount,
            },
            "afc": {
                "worker_cic_rate": afc_worker.cic_rate,
                "worker_fcs_rate": afc_worker.fcs_rate,
                "total_rate": afc_worker.total_rate,
                "base_imponible": round_money(base_afc),
                "amount": afc_worker_amount,
            },
            "apv": {
                "amount": apv_amount,
                "rebate_tax": apv_amount > 0,
            },
            "tax": {
                "base_clp": taxable_base,
                "bracket_index": bracket_index,
                "factor": bracket.factor if bracket else 0.0,
                "rebate_clp": bracket.rebate_clp if bracket else 0.0,
                "amount": tax_amount,
            },
            "total_legal": total_legal,
        },

        "voluntary_deductions": {
            "pension_alimenticia": pension_alimenticia,
            "loan": loan,
            "advance": advance,
            "caja_loan": caja_loan,
            "other": other_deductions,
            "total": voluntary_total,
        },

        "employer_cost": {
            "sis": {
                "rate": sis_rate,
                "base": round_money(base_pension),
                "amount": sis_amount,
            },
            "afc": {
                "cic_rate": afc_employer.cic_rate,
                "fcs_rate": afc_employer.fcs_rate,
                "total_rate": afc_employer.total_rate,
                "base": round_money(base_afc),
                "cic_amount": afc_employer_cic,
                "fcs_amount": afc_employer_fcs,
                "total_amount": afc_employer_total,
            },
            "work_injury": {
                "base_rate": round_rate(wi_base_rate),
                "additional_rate": round_rate(wi_additional_rate),
                "total_rate": round_rate(wi_total_rate),
                "base": round_money(base_pension),
                "amount": work_injury_amount,
            },
            "total": employer_contributions,
        },

        "parameters_snapshot": snapshot_for(version, references),
        "computed_at": utc_now_iso(),
    }

def summarize(result: Dict[str, Any]) -> Dict[str, Any]:
    """Condensed result stored with a simulation record."""
    return {
        "total_taxable_income": result["total_taxable_income"],
        "total_non_taxable_income": result["total_non_taxable_income"],
        "gross_salary": result["gross_salary"],
        "net_salary": result["net_salary"],
        "total_deductions": result["total_deductions"],
        "employer_cost_total": result["total_employer_cost"],
    }
