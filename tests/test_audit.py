
from opai.core.audit import AuditLogger

def test_simulation_history(tmp_path):
    al=AuditLogger("demo-tenant", str(tmp_path))
    sid=al.log_simulation("payslip","v1",{"base_salary_clp":900000},{"net_salary":782403.75},{"version_id":"v1"},actor="u1")
    al.log_simulation("employer_cost","v1",{},{},{"version_id":"v1"})
    assert (tmp_path/"audit"/"demo-tenant_simulations.jsonl").exists()
    assert len(al.get_simulation_history())==2
    payslips=al.get_simulation_history("payslip")
    assert len(payslips)==1
    assert payslips[0]["id"]==sid
    assert payslips[0]["results"]["net_salary"]==782403.75

def test_malformed_lines_skipped(tmp_path):
    al=AuditLogger("demo-tenant", str(tmp_path))
    al.log_persist_failure("payslip","v1","db down")
    with open(al.failures_log,"a") as f:
        f.write("not json\n")
    failures=al.get_persist_failures()
    assert len(failures)==1
    assert failures[0]["error_message"]=="db down"

def test_empty_history(tmp_path):
    al=AuditLogger("other-tenant", str(tmp_path))
    assert al.get_simulation_history()==[]
    assert al.get_persist_failures()==[]
