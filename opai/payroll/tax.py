from typing import List, Optional

from opai.payroll.types import TaxBracket

def _find(taxable_base: float, brackets: List[TaxBracket]) -> Optional[int]:
    for i, b in enumerate(brackets):
        if taxable_base >= b.from_clp and (b.to_clp is None or taxable_base <= b.to_clp):
            return i
    return None

def calculate_tax(taxable_base: float, brackets: List[TaxBracket]) -> float:
    """Impuesto Unico de Segunda Categoria: base * factor - rebate, never negative.

    A base that falls in no bracket (only possible with a malformed table or a
    gap between bracket edges) is treated as exempt.
    """
    i = _find(taxable_base, brackets)
    if i is None:
        return 0.0
    b = brackets[i]
    return max(0.0, taxable_base * b.factor - b.rebate_clp)

def find_tax_bracket_index(taxable_base: float, brackets: List[TaxBracket]) -> int:
    i = _find(taxable_base, brackets)
    return 0 if i is None else i
