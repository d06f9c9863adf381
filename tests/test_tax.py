
import pytest
from opai.payroll.seed import default_parameters
from opai.payroll.tax import calculate_tax, find_tax_bracket_index
from opai.payroll.types import TaxBracket

def _brackets(raw=None):
    raw = raw if raw is not None else default_parameters()["tax_brackets"]
    return [TaxBracket.model_validate(b) for b in raw]

def test_exempt_bracket_pays_nothing():
    b=_brackets()
    assert calculate_tax(0, b)==0.0
    assert calculate_tax(782403.75, b)==0.0
    assert find_tax_bracket_index(782403.75, b)==0

def test_second_bracket_formula():
    b=_brackets()
    # 2,454,600 * 0.08 - 121,123.14
    assert abs(calculate_tax(2454600, b)-75244.86)<0.01
    assert find_tax_bracket_index(2454600, b)==2

def test_top_bracket_is_open_ended():
    b=_brackets()
    assert find_tax_bracket_index(50_000_000, b)==len(b)-1
    assert abs(calculate_tax(50_000_000, b)-(50_000_000*0.4-2702299.02))<0.01

def test_tax_never_negative_and_monotonic():
    b=_brackets()
    previous=0.0
    for base in range(0, 30_000_000, 50_000):
        tax=calculate_tax(base, b)
        assert tax>=0
        assert tax>=previous-0.01
        previous=tax

def test_short_key_aliases():
    b=_brackets([
        {"from":0,"to":1000,"factor":0,"rebate":0},
        {"from":1000.01,"to":None,"factor":0.1,"rebate":100},
    ])
    assert calculate_tax(2000, b)==pytest.approx(100.0)
    assert find_tax_bracket_index(2000, b)==1

def test_base_in_gap_is_exempt():
    b=_brackets([
        {"from":0,"to":1000,"factor":0,"rebate":0},
        {"from":1000.01,"to":None,"factor":0.1,"rebate":100},
    ])
    assert calculate_tax(1000.005, b)==0.0
    assert find_tax_bracket_index(1000.005, b)==0
