
import pytest
from conftest import PINNED_REFS
from opai.payroll.payslip import simulate_payslip, summarize
from opai.payroll.errors import InvalidPayrollInput, NoActiveVersion
from opai.payroll.parameters import ParameterLoader
from opai.payroll.repositories import InMemoryParameterRepository
from opai.payroll.snapshot import replay_overrides

def _request(**kw):
    req={"base_salary_clp":900_000, "afp_name":"modelo", "health_system":"fonasa",
         "contract_type":"indefinite", "worked_days":30, "total_days_month":30, **PINNED_REFS}
    req.update(kw)
    return req

def test_overtime_payslip(loader):
    res=simulate_payslip(_request(overtime_hours_50=10), loader)
    assert res["hour_value"]==3750.0
    assert res["haberes"]["overtime_50"]==56250.0
    assert res["total_taxable_income"]==956250.0
    assert res["total_non_taxable_income"]==0.0
    assert res["gross_salary"]==956250.0
    d=res["deductions"]
    assert d["afp"]["amount"]==101171.25
    assert d["health"]["amount"]==66937.5
    assert d["afc"]["amount"]==5737.5
    assert d["tax"]["base_clp"]==782403.75
    assert d["tax"]["amount"]==0.0
    assert d["total_legal"]==173846.25
    assert res["net_salary"]==782403.75
    assert res["simulation_id"] is None

def test_employer_mirror_on_payslip(loader):
    res=simulate_payslip(_request(base_salary_clp=1_000_000), loader)
    e=res["employer_cost"]
    assert e["sis"]["amount"]==18800.0
    assert e["afc"]["total_amount"]==24000.0
    assert e["work_injury"]["amount"]==9300.0
    assert e["total"]==52100.0
    assert res["total_employer_cost"]==1052100.0

def test_proportional_days(loader):
    assert simulate_payslip(_request(worked_days=15), loader)["haberes"]["base_salary"]==450000.0
    res=simulate_payslip(_request(worked_days=None, absence_days={"unpaid_leave":5, "sick_leave":3}), loader)
    # only unpaid leave is discounted
    assert res["worked_days"]==25
    assert res["haberes"]["base_salary"]==750000.0

def test_overtime_hour_value_ignores_worked_days(loader):
    res=simulate_payslip(_request(worked_days=15, overtime_hours_50=10), loader)
    assert res["haberes"]["overtime_50"]==56250.0

def test_overtime_100_and_holiday(loader):
    res=simulate_payslip(_request(overtime_hours_100=4, holiday_hours_worked=8), loader)
    assert res["haberes"]["overtime_100"]==30000.0
    assert res["haberes"]["holiday_surcharge"]==60000.0
    assert res["total_taxable_income"]==990000.0

def test_gratification_opt_in(loader):
    assert simulate_payslip(_request(), loader)["haberes"]["gratification"]==0.0
    res=simulate_payslip(_request(include_gratification=True), loader)
    assert res["haberes"]["gratification"]==197916.67
    res=simulate_payslip(_request(gratification_clp=50000), loader)
    assert res["haberes"]["gratification"]==50000.0
    assert res["total_taxable_income"]==950000.0

def test_tax_bracket_applied(loader):
    res=simulate_payslip(_request(base_salary_clp=3_000_000), loader)
    d=res["deductions"]
    assert d["afp"]["amount"]==317400.0
    assert d["health"]["amount"]==210000.0
    assert d["afc"]["amount"]==18000.0
    assert d["tax"]["base_clp"]==2454600.0
    assert d["tax"]["bracket_index"]==2
    assert d["tax"]["factor"]==0.08
    assert d["tax"]["amount"]==75244.86

def test_apv_lowers_taxable_base(loader):
    res=simulate_payslip(_request(base_salary_clp=3_000_000, additional_deductions={"apv":100000}), loader)
    d=res["deductions"]
    assert d["apv"]=={"amount":100000.0, "rebate_tax":True}
    assert d["tax"]["base_clp"]==2354600.0
    assert d["tax"]["amount"]==67244.86
    assert d["total_legal"]==round(317400+210000+18000+100000+67244.86, 2)

def test_caps_on_contribution_bases(loader):
    res=simulate_payslip(_request(base_salary_clp=5_000_000), loader)
    d=res["deductions"]
    assert d["afp"]["base_imponible"]==3200000.0
    assert d["health"]["base_imponible"]==3200000.0
    assert d["afc"]["base_imponible"]==4800000.0
    assert d["afp"]["amount"]==338560.0
    assert res["employer_cost"]["sis"]["base"]==3200000.0

def test_non_taxable_items_excluded_from_contributions(loader):
    res=simulate_payslip(_request(non_taxable_allowances={"transport":30000, "meal":40000}), loader)
    assert res["total_non_taxable_income"]==70000.0
    assert res["gross_salary"]==970000.0
    assert res["deductions"]["afp"]["base_imponible"]==900000.0

def test_family_allowance_by_tranche(loader):
    res=simulate_payslip(_request(base_salary_clp=500_000, num_dependents=2, has_maternal_allowance=True), loader)
    h=res["haberes"]
    assert h["family_allowance"]==44014.0
    assert h["maternal_allowance"]==22007.0
    assert res["total_non_taxable_income"]==66021.0
    # high earners fall into the zero tranche
    res=simulate_payslip(_request(base_salary_clp=2_000_000, num_dependents=2), loader)
    assert res["haberes"]["family_allowance"]==0.0

def test_voluntary_deductions(loader):
    extra={"loan":10000, "advance":50000, "other":5000, "pension_alimenticia":80000}
    res=simulate_payslip(_request(additional_deductions=extra), loader)
    v=res["voluntary_deductions"]
    assert v["total"]==145000.0
    assert res["total_deductions"]==round(res["deductions"]["total_legal"]+145000, 2)
    assert res["net_salary"]==round(res["gross_salary"]-res["total_deductions"], 2)

def test_isapre_plan_rate(loader):
    res=simulate_payslip(_request(health_system="isapre", health_plan_pct=0.1), loader)
    assert res["deductions"]["health"]["rate"]==0.1
    assert res["deductions"]["health"]["amount"]==90000.0

def test_money_fields_rounded(loader):
    res=simulate_payslip(_request(base_salary_clp=873_333.33, worked_days=17, overtime_hours_50=3.5), loader)
    for key in ("total_taxable_income", "gross_salary", "total_deductions", "net_salary", "total_employer_cost"):
        assert round(res[key], 2)==res[key]
    for item in ("afp", "health", "afc", "tax"):
        amount=res["deductions"][item]["amount"]
        assert round(amount, 2)==amount

def test_unknown_fund_rejected(loader):
    with pytest.raises(InvalidPayrollInput):
        simulate_payslip(_request(afp_name="zeta"), loader)

def test_unknown_input_field_rejected(loader):
    with pytest.raises(ValueError):
        simulate_payslip(_request(bonus=1), loader)

def test_missing_configuration_propagates():
    with pytest.raises(NoActiveVersion):
        simulate_payslip(_request(), ParameterLoader(InMemoryParameterRepository()))

def test_replay_and_summary(loader):
    original=simulate_payslip(_request(overtime_hours_50=10), loader)
    replayed=simulate_payslip(_request(overtime_hours_50=10, **replay_overrides(original["parameters_snapshot"])), loader)
    assert summarize(replayed)==summarize(original)
    assert replayed["deductions"]==original["deductions"]
    assert summarize(original)["employer_cost_total"]==original["total_employer_cost"]

def test_isapre_plan_below_legal_minimum_rejected(loader):
    with pytest.raises(InvalidPayrollInput) as exc:
        simulate_payslip(_request(health_system="isapre", health_plan_pct=0.05), loader)
    assert exc.value.field=="health_plan_pct"
    # the minimum itself is accepted
    res=simulate_payslip(_request(health_system="isapre", health_plan_pct=0.07), loader)
    assert res["deductions"]["health"]["amount"]==63000.0
