
import logging
from datetime import date

import pytest
from opai.payroll.errors import NoActiveVersion, VersionNotFound, NoVersionForDate, NoIndexAvailable
from opai.payroll.parameters import ParameterLoader
from opai.payroll.repositories import InMemoryParameterRepository
from opai.payroll.types import ParameterVersion

def test_load_active_and_by_id(loader):
    assert loader.load_active().id=="v-2026-02"
    assert loader.load_by_id("v-2026-01").name=="Chile Enero 2026"
    assert loader.load(None).id=="v-2026-02"
    assert loader.load("v-2026-01").id=="v-2026-01"

def test_missing_versions_raise():
    empty=ParameterLoader(InMemoryParameterRepository())
    with pytest.raises(NoActiveVersion):
        empty.load_active()
    with pytest.raises(VersionNotFound) as exc:
        empty.load_by_id("nope")
    assert exc.value.version_id=="nope"

def test_load_by_date_half_open(loader):
    assert loader.load_by_date("2026-01-15").id=="v-2026-01"
    # Jan ends on Feb 1 (exclusive), Feb starts on it
    assert loader.load_by_date(date(2026, 2, 1)).id=="v-2026-02"
    assert loader.load_by_date("2026-02-28").id=="v-2026-02"
    with pytest.raises(NoVersionForDate):
        loader.load_by_date("2026-03-01")
    with pytest.raises(NoVersionForDate):
        loader.load_by_date("2025-12-31")

def test_parsed_parameters(loader):
    params=loader.load_active().parameters
    assert params.sis.employer_rate==0.0188
    assert params.caps.pension_uf==80
    assert params.afc.for_contract("fixed_term").employer.total_rate==0.03
    assert params.gratification.annual_cap_imm_multiple==4.75
    assert params.imm.value_clp==500000

def test_resolve_uf_exact_and_fallback(loader, caplog):
    uf=loader.resolve_uf("2026-02-10")
    assert uf.value==40100.0 and uf.date=="2026-02-10"
    with caplog.at_level(logging.WARNING):
        uf=loader.resolve_uf("2026-02-09")
    # closest prior record, never a later one
    assert uf.value==40000.0 and uf.date=="2026-02-01"
    assert "No UF for 2026-02-09" in caplog.text
    with pytest.raises(NoIndexAvailable) as exc:
        loader.resolve_uf("2026-01-31")
    assert exc.value.index=="UF"

def test_resolve_utm_normalizes_month(loader):
    utm=loader.resolve_utm("2026-02-17")
    assert utm.value==69611.0 and utm.date=="2026-02-01"
    utm=loader.resolve_utm("2026-04-03")
    assert utm.value==69611.0 and utm.date=="2026-02-01"
    with pytest.raises(NoIndexAvailable):
        loader.resolve_utm("2025-12-01")

def test_fx_references_explicit_values_used_verbatim(loader):
    refs=loader.resolve_fx_references(500000, uf_value=39000, uf_date="2026-02-03", utm_value=70000, utm_month="2026-02-20")
    assert refs.uf_clp==39000.0 and refs.uf_date=="2026-02-03"
    assert refs.utm_clp==70000.0 and refs.utm_month=="2026-02-01"
    assert refs.imm_clp==500000.0

def test_fx_references_date_only_selects_record(loader):
    refs=loader.resolve_fx_references(500000, uf_date="2026-02-12", utm_month="2026-01-05")
    assert refs.uf_clp==40100.0 and refs.uf_date=="2026-02-10"
    assert refs.utm_clp==69000.0 and refs.utm_month=="2026-01-01"

def test_fx_references_value_without_date_is_ignored(loader):
    # a value without its date is not an override
    refs=loader.resolve_fx_references(500000, uf_value=39000, uf_date=None, utm_value=70000, utm_month=None)
    # resolved from the store: latest record at or before today
    assert refs.uf_clp==40100.0 and refs.uf_date=="2026-02-10"
    assert refs.utm_clp==69611.0 and refs.utm_month=="2026-02-01"

def test_overlapping_versions_latest_start_wins(params_data):
    versions=[
        ParameterVersion(id="v-open", name="Abierta", effective_from=date(2026,1,1), effective_until=None, is_active=True, data=params_data),
        ParameterVersion(id="v-feb", name="Febrero", effective_from=date(2026,2,1), effective_until=None, is_active=False, data=params_data),
    ]
    loader=ParameterLoader(InMemoryParameterRepository(versions))
    assert loader.load_by_date("2026-02-15").id=="v-feb"
    assert loader.load_by_date("2026-01-15").id=="v-open"
