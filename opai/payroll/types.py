"""
Payroll engine data model.

The parameter payload is parsed into pydantic models at the boundary so a
malformed version fails loudly instead of producing a zero rate. The raw
payload dict is kept next to the parsed one: snapshots embed it verbatim.
"""
from dataclasses import dataclass, asdict
from datetime import date
from functools import cached_property
from typing import Dict, List, Any, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator

from opai.core.config import settings

ContractType = Literal["indefinite", "fixed_term"]
HealthSystem = Literal["fonasa", "isapre"]

# ============================================
# Legal parameter payload
# ============================================

class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

class AfpCommission(_Payload):
    commission_rate: float
    sis_included: bool = False
    last_updated: Optional[str] = None

class AfpTable(_Payload):
    base_rate: float = settings.AFP_BASE_RATE
    commissions: Dict[str, AfpCommission] = {}

    @field_validator("commissions", mode="before")
    @classmethod
    def _bare_rates(cls, v):
        # {"modelo": 0.0058} is accepted as shorthand
        if isinstance(v, dict):
            return {k: ({"commission_rate": r} if isinstance(r, (int, float)) else r) for k, r in v.items()}
        return v

class SisTable(_Payload):
    employer_rate: float

class FonasaConfig(_Payload):
    rate: float = settings.FONASA_RATE

class IsapreConfig(_Payload):
    min_rate: float = settings.FONASA_RATE

class HealthTable(_Payload):
    fonasa: FonasaConfig = FonasaConfig()
    isapre: IsapreConfig = IsapreConfig()

class AfcRates(_Payload):
    cic_rate: float = 0.0
    fcs_rate: float = 0.0
    total_rate: Optional[float] = None

    @model_validator(mode="after")
    def _fill_total(self):
        if self.total_rate is None:
            self.total_rate = self.cic_rate + self.fcs_rate
        return self

class AfcContract(_Payload):
    worker: AfcRates
    employer: AfcRates

class AfcTable(_Payload):
    indefinite: AfcContract
    fixed_term: AfcContract

    def for_contract(self, contract_type: str) -> AfcContract:
        return self.indefinite if contract_type == "indefinite" else self.fixed_term

class Caps(_Payload):
    """Contribution ceilings in UF."""
    pension_uf: float = Field(validation_alias=AliasChoices("pension_uf", "pension"))
    health_uf: float = Field(validation_alias=AliasChoices("health_uf", "health"))
    work_injury_uf: float = Field(validation_alias=AliasChoices("work_injury_uf", "work_injury"))
    afc_uf: float = Field(validation_alias=AliasChoices("afc_uf", "afc"))

class TaxBracket(_Payload):
    from_clp: float = Field(validation_alias=AliasChoices("from_clp", "from"))
    to_clp: Optional[float] = Field(None, validation_alias=AliasChoices("to_clp", "to"))
    factor: float
    rebate_clp: float = Field(0.0, validation_alias=AliasChoices("rebate_clp", "rebate"))
    effective_rate_max: Optional[float] = None

class WorkInjuryTable(_Payload):
    base_rate: Optional[float] = None
    additional_rate_default: float = 0.0
    risk_levels: Dict[str, float] = {}

class Gratification(_Payload):
    """Art. 50 CT, 25% monthly regime."""
    monthly_rate: float = 0.25
    annual_cap_imm_multiple: float = 4.75

    @model_validator(mode="before")
    @classmethod
    def _unwrap_regime(cls, data):
        if isinstance(data, dict) and "regime_25_monthly" in data:
            return data["regime_25_monthly"] or {}
        return data

class FamilyTranche(_Payload):
    from_clp: float
    to_clp: Optional[float] = None
    amount_per_dependent: float = 0.0
    amount_maternal: float = 0.0
    amount_invalidity: float = 0.0

class FamilyAllowance(_Payload):
    enabled: bool = False
    tranches: List[FamilyTranche] = []

class MinimumWage(_Payload):
    value_clp: float
    effective_from: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _bare_amount(cls, data):
        if isinstance(data, (int, float)):
            return {"value_clp": data}
        return data

class PayrollParameters(_Payload):
    afp: AfpTable
    sis: SisTable
    health: HealthTable = HealthTable()
    afc: AfcTable
    caps: Caps
    tax_brackets: List[TaxBracket]
    work_injury: WorkInjuryTable = WorkInjuryTable()
    gratification: Gratification = Gratification()
    family_allowance: FamilyAllowance = FamilyAllowance()
    imm: MinimumWage

@dataclass(frozen=True)
class ParameterVersion:
    id: str
    name: str
    effective_from: date
    effective_until: Optional[date]
    is_active: bool
    data: Dict[str, Any]

    @cached_property
    def parameters(self) -> PayrollParameters:
        return PayrollParameters.model_validate(self.data)

# ============================================
# Currency references
# ============================================

@dataclass(frozen=True)
class IndexValue:
    value: float
    date: str  # date of the record actually used, ISO

@dataclass(frozen=True)
class FxReferences:
    uf_clp: float
    uf_date: str
    utm_clp: float
    utm_month: str
    imm_clp: float

    def to_dict(self):
        return asdict(self)

# ============================================
# Engine inputs
# ============================================

class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid")

class WorkInjuryOverride(_Input):
    basic_rate: Optional[float] = None
    additional_rate: Optional[float] = None
    extra_rate: Optional[float] = None
    total_rate: Optional[float] = None

class CostAssumptions(_Input):
    include_gratification: bool = True
    include_vacation_provision: bool = True
    include_severance_provision: bool = True
    vacation_provision_pct: float = Field(settings.DEFAULT_VACATION_PROVISION_PCT, ge=0)
    severance_provision_pct: float = Field(settings.DEFAULT_SEVERANCE_PROVISION_PCT, ge=0)
    work_injury_override: Optional[WorkInjuryOverride] = None

class _ReferenceOverrides(_Input):
    params_version_id: Optional[str] = None
    uf_value: Optional[float] = Field(None, gt=0)
    uf_date: Optional[date] = None
    utm_value: Optional[float] = Field(None, gt=0)
    utm_month: Optional[date] = None

class EmployerCostInput(_ReferenceOverrides):
    base_salary_clp: float = Field(gt=0)
    contract_type: ContractType = "indefinite"

    afp_name: str = settings.DEFAULT_AFP_NAME
    health_system: HealthSystem = "fonasa"
    health_plan_pct: float = Field(settings.DEFAULT_HEALTH_PLAN_PCT, ge=0, le=1)
    work_injury_risk: str = settings.DEFAULT_WORK_INJURY_RISK

    overtime_hours_50: float = Field(0.0, ge=0)
    commissions: float = Field(0.0, ge=0)

    transport_allowance: float = Field(0.0, ge=0)
    meal_allowance: float = Field(0.0, ge=0)
    num_dependents: int = Field(0, ge=0)
    has_maternal_allowance: bool = False

    assumptions: CostAssumptions = Field(default_factory=CostAssumptions)

class NonTaxableAllowances(_Input):
    transport: float = Field(0.0, ge=0)
    meal: float = Field(0.0, ge=0)
    family: float = Field(0.0, ge=0)
    maternal: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

class AbsenceDays(_Input):
    sick_leave: float = Field(0.0, ge=0)  # paid by the health system, no discount
    unpaid_leave: float = Field(0.0, ge=0)
    vacation: float = Field(0.0, ge=0)

class AdditionalDeductions(_Input):
    apv: float = Field(0.0, ge=0)  # regime B, lowers the taxable base
    pension_alimenticia: float = Field(0.0, ge=0)
    loan: float = Field(0.0, ge=0)
    advance: float = Field(0.0, ge=0)
    caja_loan: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

class PayslipInput(_ReferenceOverrides):
    base_salary_clp: float = Field(gt=0)
    gratification_clp: Optional[float] = Field(None, ge=0)
    include_gratification: bool = False
    overtime_hours_50: float = Field(0.0, ge=0)
    overtime_hours_100: float = Field(0.0, ge=0)
    commissions: float = Field(0.0, ge=0)
    other_taxable_allowances: float = Field(0.0, ge=0)
    holiday_hours_worked: float = Field(0.0, ge=0)

    non_taxable_allowances: NonTaxableAllowances = Field(default_factory=NonTaxableAllowances)

    worked_days: Optional[float] = Field(None, ge=0)
    total_days_month: int = Field(settings.DEFAULT_TOTAL_DAYS_MONTH, gt=0)
    absence_days: AbsenceDays = Field(default_factory=AbsenceDays)

    contract_type: ContractType = "indefinite"
    afp_name: str = settings.DEFAULT_AFP_NAME
    health_system: HealthSystem = "fonasa"
    health_plan_pct: float = Field(settings.DEFAULT_HEALTH_PLAN_PCT, ge=0, le=1)
    work_injury_risk: str = settings.DEFAULT_WORK_INJURY_RISK
    work_injury_override: Optional[WorkInjuryOverride] = None

    num_dependents: int = Field(0, ge=0)
    has_maternal_allowance: bool = False
    has_invalidity_allowance: bool = False

    additional_deductions: AdditionalDeductions = Field(default_factory=AdditionalDeductions)

    save_simulation: bool = True
