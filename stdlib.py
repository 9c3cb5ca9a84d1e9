"""
BASIC Standard Library
Built-in arithmetic operators and comparators over integers
"""

from typing import Callable, Dict
import operator

from error_handling import DivideByZeroError


# ============================================================================
# ARITHMETIC
# ============================================================================

def basic_div(a: int, b: int) -> int:
  """Integer quotient truncated toward zero"""
  if b == 0:
    raise DivideByZeroError()
  quotient = abs(a) // abs(b)
  return quotient if (a < 0) == (b < 0) else -quotient


BUILTIN_OPERATORS: Dict[str, Callable[[int, int], int]] = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': basic_div,
}


# ============================================================================
# COMPARISON
# ============================================================================

COMPARATORS: Dict[str, Callable[[int, int], bool]] = {
    '<': operator.lt,
    '>': operator.gt,
    '=': operator.eq,
}
