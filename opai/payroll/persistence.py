"""
Append-only storage of simulation records for the audit trail.
Sinks only insert; a record is never updated or deleted once written.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opai.core.audit import AuditLogger
from opai.db.models import PayrollSimulation
from opai.payroll.errors import SimulationPersistFailed

class SimulationSink(ABC):
    @abstractmethod
    def save(
        self,
        simulation_type: str,
        inputs: Dict[str, Any],
        results: Dict[str, Any],
        parameters_snapshot: Dict[str, Any],
        actor: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> str:
        """Insert one record and return its id. Raises SimulationPersistFailed."""
        pass

class SqlSimulationSink(SimulationSink):
    def __init__(self, session: Session):
        self.session = session

    def save(self, simulation_type, inputs, results, parameters_snapshot, actor=None, tenant_id=None) -> str:
        record = PayrollSimulation(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            simulation_type=simulation_type,
            params_version_id=parameters_snapshot["version_id"],
            inputs=inputs,
            results=results,
            parameters_snapshot=parameters_snapshot,
            created_by_user_id=actor,
        )
        try:
            self.session.add(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise SimulationPersistFailed(e) from e
        return record.id

class JsonlSimulationSink(SimulationSink):
    def __init__(self, audit_logger: AuditLogger):
        self.audit_logger = audit_logger

    def save(self, simulation_type, inputs, results, parameters_snapshot, actor=None, tenant_id=None) -> str:
        try:
            return self.audit_logger.log_simulation(
                simulation_type=simulation_type,
                params_version_id=parameters_snapshot["version_id"],
                inputs=inputs,
                results=results,
                parameters_snapshot=parameters_snapshot,
                actor=actor,
            )
        except OSError as e:
            raise SimulationPersistFailed(e) from e
