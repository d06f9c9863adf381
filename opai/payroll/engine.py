import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from opai.core.audit import AuditLogger
from opai.core.utils import setup_logging
from opai.payroll.employer_cost import compute_employer_cost
from opai.payroll.errors import SimulationPersistFailed
from opai.payroll.parameters import ParameterLoader
from opai.payroll.payslip import simulate_payslip, summarize
from opai.payroll.persistence import SimulationSink
from opai.payroll.repositories import ParameterRepository
from opai.payroll.types import EmployerCostInput, PayslipInput

class PayrollEngine:
    """Tenant-scoped entry point: pure computation plus the optional audit write."""

    def __init__(
        self,
        tenant_id: str,
        repository: ParameterRepository,
        sink: Optional[SimulationSink] = None,
        audit_logger: Optional[AuditLogger] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.tenant_id = tenant_id
        self.loader = ParameterLoader(repository)
        self.sink = sink
        self.audit_logger = audit_logger
        self.logger = logger or setup_logging(tenant_id)

    def compute_employer_cost(self, request: Union[EmployerCostInput, Dict[str, Any]]) -> Dict[str, Any]:
        return compute_employer_cost(request, self.loader)

    def simulate_payslip(
        self,
        request: Union[PayslipInput, Dict[str, Any]],
        actor: Optional[str] = None,
    ) -> Dict[str, Any]:
        inp = PayslipInput.model_validate(request)
        result = simulate_payslip(inp, self.loader)
        if inp.save_simulation:
            simulation_id, error = self.record(
                "payslip", inp.model_dump(mode="json"), summarize(result), result["parameters_snapshot"], actor
            )
            result["simulation_id"] = simulation_id
            if error:
                result["simulation_error"] = error
        return result

    def record(
        self,
        simulation_type: str,
        inputs: Dict[str, Any],
        results: Dict[str, Any],
        snapshot: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Persist a simulation, returning (id, error). A failed write never discards the numbers."""
        if self.sink is None:
            self.logger.warning("No simulation sink configured, %s not persisted", simulation_type)
            return None, None
        try:
            simulation_id = self.sink.save(
                simulation_type, inputs, results, snapshot, actor=actor, tenant_id=self.tenant_id
            )
        except Exception as e:
            failure = e if isinstance(e, SimulationPersistFailed) else SimulationPersistFailed(e)
            self.logger.error("Simulation persistence failed for version %s: %s", snapshot["version_id"], failure)
            if self.audit_logger is not None:
                try:
                    self.audit_logger.log_persist_failure(simulation_type, snapshot["version_id"], str(failure), actor)
                except OSError:
                    self.logger.exception("Could not write persistence failure to audit trail")
            return None, str(failure)
        self.logger.info("Simulation %s stored (%s)", simulation_id, simulation_type)
        return simulation_id, None

    def run_payroll(self, requests: List[Dict[str, Any]], actor: Optional[str] = None) -> List[Dict[str, Any]]:
        return [self.simulate_payslip(r, actor=actor) for r in requests]
