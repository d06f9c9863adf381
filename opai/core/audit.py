"""
Audit trail for payroll computations.
Append-only JSONL files per tenant: one for persisted simulations, one for
persistence failures so audit completeness can be checked on its own.
"""
import json
import uuid
from pathlib import Path
from typing import Dict, List, Any, Optional
from datetime import datetime, timezone

from opai.core.config import settings

class AuditLogger:
    """Audit logger for simulation records and persistence failures."""

    def __init__(self, tenant_id: str, audit_dir: Optional[str] = None):
        self.tenant_id = tenant_id

        self.audit_dir = Path(audit_dir or settings.AUDIT_LOG_PATH) / "audit"
        self.audit_dir.mkdir(parents=True, exist_ok=True)

        self.simulations_log = self.audit_dir / f"{tenant_id}_simulations.jsonl"
        self.failures_log = self.audit_dir / f"{tenant_id}_persist_failures.jsonl"

    def log_simulation(
        self,
        simulation_type: str,
        params_version_id: str,
        inputs: Dict[str, Any],
        results: Dict[str, Any],
        parameters_snapshot: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> str:
        """Append one immutable simulation record and return its id."""

        simulation_id = str(uuid.uuid4())
        log_entry = {
            'id': simulation_id,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'tenant_id': self.tenant_id,
            'type': simulation_type,
            'params_version_id': params_version_id,
            'inputs': inputs,
            'results': results,
            'parameters_snapshot': parameters_snapshot,
            'actor': actor,
        }

        with open(self.simulations_log, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, default=str) + '\n')

        return simulation_id

    def log_persist_failure(
        self,
        simulation_type: str,
        params_version_id: str,
        error_message: str,
        actor: Optional[str] = None,
    ):
        """Record that a computed result could not be stored."""

        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'tenant_id': self.tenant_id,
            'type': simulation_type,
            'params_version_id': params_version_id,
            'error_message': error_message,
            'actor': actor,
        }

        with open(self.failures_log, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, default=str) + '\n')

    def get_simulation_history(self, simulation_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get stored simulations, newest first."""
        return self._read_jsonl(self.simulations_log, simulation_type)

    def get_persist_failures(self) -> List[Dict[str, Any]]:
        return self._read_jsonl(self.failures_log)

    def _read_jsonl(self, path: Path, simulation_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if not path.exists():
            return []

        entries = []
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                try:
                    entry = json.loads(line.strip())
                except json.JSONDecodeError:
                    continue
                if simulation_type is None or entry.get('type') == simulation_type:
                    entries.append(entry)

        entries.sort(key=lambda x: x['timestamp'], reverse=True)
        return entries
