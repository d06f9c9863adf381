"""
Initial payroll data: Chilean legal parameters for February 2026 plus the
matching UF/UTM references. Sources: SII, Previred, Superintendencia de
Pensiones.
"""
import copy
import logging
from datetime import date
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from opai.db.models import PayrollParameterVersion, FxUfRate, FxUtmRate

logger = logging.getLogger(__name__)

VERSION_NAME = "Parámetros Legales Chile - Febrero 2026"
EFFECTIVE_FROM = date(2026, 2, 1)
EFFECTIVE_UNTIL = date(2026, 3, 1)  # exclusive

UF_FEB_2026 = (date(2026, 2, 1), 39703.50)
UTM_FEB_2026 = (date(2026, 2, 1), 69611.0)

PARAMETERS_FEB_2026: Dict[str, Any] = {
    "version_metadata": {
        "name": VERSION_NAME,
        "effective_from": "2026-02-01",
        "effective_until": "2026-03-01",
        "source": "SII, Previred, Superintendencia de Pensiones",
    },
    "afp": {
        "base_rate": 0.10,
        "commissions": {
            "uno": {"commission_rate": 0.0046, "sis_included": False},
            "modelo": {"commission_rate": 0.0058, "sis_included": False},
            "planvital": {"commission_rate": 0.0116, "sis_included": False},
            "habitat": {"commission_rate": 0.0127, "sis_included": False},
            "capital": {"commission_rate": 0.0144, "sis_included": False},
            "cuprum": {"commission_rate": 0.0144, "sis_included": False},
            "provida": {"commission_rate": 0.0145, "sis_included": False},
        },
    },
    "sis": {"employer_rate": 0.0154, "applies_to": "employer", "base": "pension_cap"},
    "health": {
        "fonasa": {"rate": 0.07, "is_fixed": True},
        "isapre": {"min_rate": 0.07, "is_fixed": False},
    },
    "afc": {
        "indefinite": {
            "worker": {"cic_rate": 0.006, "fcs_rate": 0.0, "total_rate": 0.006},
            "employer": {"cic_rate": 0.016, "fcs_rate": 0.008, "total_rate": 0.024},
        },
        "fixed_term": {
            "worker": {"cic_rate": 0.0, "fcs_rate": 0.0, "total_rate": 0.0},
            "employer": {"cic_rate": 0.028, "fcs_rate": 0.002, "total_rate": 0.03},
        },
    },
    "caps": {"pension_uf": 89.9, "health_uf": 89.9, "work_injury_uf": 89.9, "afc_uf": 135.1},
    "tax_brackets": [
        {"from_clp": 0, "to_clp": 939748.5, "factor": 0, "rebate_clp": 0, "effective_rate_max": 0},
        {"from_clp": 939748.51, "to_clp": 2088330.0, "factor": 0.04, "rebate_clp": 37589.94, "effective_rate_max": 0.022},
        {"from_clp": 2088330.01, "to_clp": 3480550.0, "factor": 0.08, "rebate_clp": 121123.14, "effective_rate_max": 0.0452},
        {"from_clp": 3480550.01, "to_clp": 4872770.0, "factor": 0.135, "rebate_clp": 312553.39, "effective_rate_max": 0.0709},
        {"from_clp": 4872770.01, "to_clp": 6264990.0, "factor": 0.23, "rebate_clp": 775466.54, "effective_rate_max": 0.1062},
        {"from_clp": 6264990.01, "to_clp": 8353320.0, "factor": 0.304, "rebate_clp": 1239075.8, "effective_rate_max": 0.1557},
        {"from_clp": 8353320.01, "to_clp": 21579410.0, "factor": 0.35, "rebate_clp": 1623328.52, "effective_rate_max": 0.2748},
        {"from_clp": 21579410.01, "to_clp": None, "factor": 0.4, "rebate_clp": 2702299.02, "effective_rate_max": 0.4},
    ],
    "work_injury": {
        "base_rate": 0.0093,
        "additional_rate_default": 0.0,
        "employer_rate_default": 0.0093,
        "risk_levels": {"low": 0.0093, "medium": 0.0095, "high": 0.0134, "security_industry": 0.0120},
        "base": "pension_cap",
    },
    "gratification": {
        "regime_25_monthly": {"enabled": True, "monthly_rate": 0.25, "annual_cap_imm_multiple": 4.75},
        "regime_30_annual": {"enabled": False, "annual_rate": 0.30},
    },
    "family_allowance": {
        "enabled": True,
        "tranches": [
            {"from_clp": 0, "to_clp": 631976, "amount_per_dependent": 22007, "amount_maternal": 22007, "amount_invalidity": 22007},
            {"from_clp": 631977, "to_clp": 923067, "amount_per_dependent": 13505, "amount_maternal": 13505, "amount_invalidity": 13505},
            {"from_clp": 923068, "to_clp": 1439668, "amount_per_dependent": 4267, "amount_maternal": 4267, "amount_invalidity": 4267},
            {"from_clp": 1439669, "to_clp": None, "amount_per_dependent": 0, "amount_maternal": 0, "amount_invalidity": 0},
        ],
    },
    "imm": {"value_clp": 500000, "effective_from": "2024-07-01"},
    "apv": {"max_monthly_uf": 50, "max_annual_uf": 600, "regime_b_tax_deduction": True},
}

def default_parameters() -> Dict[str, Any]:
    return copy.deepcopy(PARAMETERS_FEB_2026)

def seed_payroll_data(session: Session, created_by: str = "system") -> PayrollParameterVersion:
    """Insert the February 2026 version and references if missing. Idempotent."""
    if session.get(FxUfRate, UF_FEB_2026[0]) is None:
        session.add(FxUfRate(date=UF_FEB_2026[0], value=UF_FEB_2026[1], source="SBIF"))
    if session.get(FxUtmRate, UTM_FEB_2026[0]) is None:
        session.add(FxUtmRate(month=UTM_FEB_2026[0], value=UTM_FEB_2026[1], source="SII"))

    version = session.scalars(
        select(PayrollParameterVersion).where(PayrollParameterVersion.name == VERSION_NAME)
    ).first()
    if version is None:
        version = PayrollParameterVersion(
            name=VERSION_NAME,
            description="Tasas y topes oficiales vigentes para febrero 2026",
            effective_from=EFFECTIVE_FROM,
            effective_until=EFFECTIVE_UNTIL,
            data=default_parameters(),
            is_active=True,
            created_by=created_by,
        )
        session.add(version)
        logger.info("Seeded parameter version %s", VERSION_NAME)

    session.commit()
    return version
