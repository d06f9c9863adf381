"""
Parameters snapshot: the immutable provenance record attached to every result.
Replaying a computation with the snapshot's version id and references must
reproduce it exactly.
"""
import copy
from datetime import date
from typing import Dict, Any, Optional

from opai.core.utils import iso_date, round_money, utc_now_iso
from opai.payroll.types import FxReferences, PayrollParameters, ParameterVersion

def caps_in_clp(parameters: PayrollParameters, uf_clp: float) -> Dict[str, float]:
    caps = parameters.caps
    return {
        "pension": round_money(caps.pension_uf * uf_clp),
        "health": round_money(caps.health_uf * uf_clp),
        "work_injury": round_money(caps.work_injury_uf * uf_clp),
        "afc": round_money(caps.afc_uf * uf_clp),
    }

def create_snapshot(
    version_id: str,
    version_name: str,
    effective_from: date,
    effective_until: Optional[date],
    parameters: Dict[str, Any],
    references: FxReferences,
) -> Dict[str, Any]:
    refs = references.to_dict()
    refs["captured_at"] = utc_now_iso()
    return {
        "version_id": version_id,
        "name": version_name,
        "effective_from": iso_date(effective_from),
        "effective_until": iso_date(effective_until),
        "references_at_calculation": refs,
        "caps_clp": caps_in_clp(PayrollParameters.model_validate(parameters), references.uf_clp),
        "full_data": copy.deepcopy(parameters),
    }

def snapshot_for(version: ParameterVersion, references: FxReferences) -> Dict[str, Any]:
    return create_snapshot(
        version.id,
        version.name,
        version.effective_from,
        version.effective_until,
        version.data,
        references,
    )

def replay_overrides(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """Input fields that pin a new computation to the snapshot's version and references."""
    refs = snapshot["references_at_calculation"]
    return {
        "params_version_id": snapshot["version_id"],
        "uf_value": refs["uf_clp"],
        "uf_date": refs["uf_date"],
        "utm_value": refs["utm_clp"],
        "utm_month": refs["utm_month"],
    }
