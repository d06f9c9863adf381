"""
Bulk payslip processing for a payroll run.
Takes a table of workers (CSV/Excel/JSON file or DataFrame), simulates one
payslip per row and reports which rows were skipped and why.
"""
import math
import pandas as pd
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from pydantic import ValidationError

from .engine import PayrollEngine
from .errors import InvalidPayrollInput

TEMPLATE_COLUMNS = [
    'employee_id', 'name', 'base_salary_clp', 'contract_type', 'afp_name', 'health_system',
    'health_plan_pct', 'worked_days', 'total_days_month', 'overtime_hours_50', 'overtime_hours_100',
    'holiday_hours_worked', 'other_taxable_allowances', 'transport', 'meal', 'loan', 'advance',
]

NUMERIC_FIELDS = [
    'base_salary_clp', 'health_plan_pct', 'worked_days', 'total_days_month', 'overtime_hours_50',
    'overtime_hours_100', 'holiday_hours_worked', 'other_taxable_allowances', 'transport', 'meal',
    'loan', 'advance',
]

def _present(value) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))

class PayrollBulkProcessor:
    """Runs the payslip simulator over every row of a payroll table."""

    def __init__(self, engine: PayrollEngine):
        self.engine = engine

    def get_template(self) -> pd.DataFrame:
        """Get payroll upload template with one example row."""
        return pd.DataFrame([{
            'employee_id': 'G-0001',
            'name': 'Juan Pérez',
            'base_salary_clp': 539000,
            'contract_type': 'indefinite',
            'afp_name': 'modelo',
            'health_system': 'fonasa',
            'health_plan_pct': 0.07,
            'worked_days': 30,
            'total_days_month': 30,
            'overtime_hours_50': 0,
            'overtime_hours_100': 0,
            'holiday_hours_worked': 0,
            'other_taxable_allowances': 0,
            'transport': 0,
            'meal': 0,
            'loan': 0,
            'advance': 0,
        }], columns=TEMPLATE_COLUMNS)

    def load_rows(self, source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
        if isinstance(source, pd.DataFrame):
            df = source.copy()
        else:
            path = Path(source)
            suffix = path.suffix.lower()
            if suffix == '.csv':
                df = pd.read_csv(path)
            elif suffix in ('.xlsx', '.xls'):
                df = pd.read_excel(path)
            elif suffix == '.json':
                df = pd.read_json(path)
            else:
                raise ValueError(f"Unsupported payroll file type: {suffix}")

        for field in NUMERIC_FIELDS:
            if field in df.columns:
                df[field] = pd.to_numeric(df[field], errors='coerce')
        if 'employee_id' in df.columns:
            df['employee_id'] = df['employee_id'].map(lambda v: str(v).strip().upper() if _present(v) else None)
        return df

    def row_to_request(self, row: Dict[str, Any], save_simulation: bool = True) -> Dict[str, Any]:
        """Map one table row to a payslip input."""
        request: Dict[str, Any] = {
            'base_salary_clp': float(row['base_salary_clp']),
            'save_simulation': save_simulation,
        }
        for field in ('contract_type', 'afp_name', 'health_system'):
            if _present(row.get(field)):
                request[field] = str(row[field]).strip().lower()
        for field in ('health_plan_pct', 'worked_days', 'overtime_hours_50', 'overtime_hours_100',
                      'holiday_hours_worked', 'other_taxable_allowances'):
            if _present(row.get(field)):
                request[field] = float(row[field])
        if _present(row.get('total_days_month')):
            request['total_days_month'] = int(row['total_days_month'])

        allowances = {k: float(row[k]) for k in ('transport', 'meal') if _present(row.get(k))}
        if allowances:
            request['non_taxable_allowances'] = allowances
        deductions = {k: float(row[k]) for k in ('loan', 'advance') if _present(row.get(k))}
        if deductions:
            request['additional_deductions'] = deductions
        return request

    def run(
        self,
        source: Union[str, Path, pd.DataFrame],
        actor: Optional[str] = None,
        save_simulations: bool = True,
    ) -> Dict[str, Any]:
        """
        Simulate every row. Rows without a usable salary are skipped with a
        reason code; rows with invalid inputs are reported as errors. Missing
        legal parameters abort the whole run.
        """
        df = self.load_rows(source)
        rows = df.to_dict(orient='records')

        result: Dict[str, Any] = {
            'total': len(rows),
            'created': 0,
            'skipped': 0,
            'skipped_details': [],
            'errors': [],
            'results': [],
        }

        for row in rows:
            employee_id = row.get('employee_id')
            name = row.get('name', '')
            salary = row.get('base_salary_clp')

            if not _present(salary):
                result['skipped'] += 1
                result['skipped_details'].append({
                    'employee_id': employee_id, 'name': name,
                    'reason': 'No base salary configured', 'reason_code': 'NO_SALARY',
                })
                continue
            if salary <= 0:
                result['skipped'] += 1
                result['skipped_details'].append({
                    'employee_id': employee_id, 'name': name,
                    'reason': 'Base salary is zero', 'reason_code': 'ZERO_SALARY',
                })
                continue

            try:
                payslip = self.engine.simulate_payslip(self.row_to_request(row, save_simulations), actor=actor)
            except (InvalidPayrollInput, ValidationError) as e:
                result['errors'].append({'employee_id': employee_id, 'name': name, 'error': str(e)})
                continue

            payslip['employee_id'] = employee_id
            payslip['name'] = name
            result['results'].append(payslip)
            result['created'] += 1

        self.engine.logger.info(
            "Payroll run: %s rows, %s created, %s skipped, %s errors",
            result['total'], result['created'], result['skipped'], len(result['errors']),
        )
        return result

    def results_frame(self, run_result: Dict[str, Any]) -> pd.DataFrame:
        """One summary line per simulated payslip."""
        lines: List[Dict[str, Any]] = []
        for p in run_result['results']:
            d = p['deductions']
            lines.append({
                'employee_id': p.get('employee_id'),
                'name': p.get('name'),
                'total_taxable_income': p['total_taxable_income'],
                'total_non_taxable_income': p['total_non_taxable_income'],
                'gross_salary': p['gross_salary'],
                'afp': d['afp']['amount'],
                'health': d['health']['amount'],
                'afc': d['afc']['amount'],
                'tax': d['tax']['amount'],
                'total_deductions': p['total_deductions'],
                'net_salary': p['net_salary'],
                'total_employer_cost': p['total_employer_cost'],
                'simulation_id': p.get('simulation_id'),
            })
        return pd.DataFrame(lines)

    def export_results(self, run_result: Dict[str, Any], file_path: Union[str, Path]) -> bool:
        """Export run results to an Excel file."""
        df = self.results_frame(run_result)
        if df.empty:
            return False
        df.to_excel(file_path, index=False)
        return True
