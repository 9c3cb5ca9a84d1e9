"""
Utilities module for the BASIC interpreter
Helpers shared by the execution engine and the statement executors
"""

from typing import Dict, List, Optional
import bisect
import re

from error_handling import InvalidNumberError, LineNumberError


NUMBER_REPLY_PATTERN = re.compile(r'-?\d+')


# ==================== LINE SEQUENCE UTILITIES ====================

def sorted_lines(program: Dict[int, object]) -> List[int]:
  """Stored line numbers in ascending order"""
  return sorted(program)


def next_line_after(lines: List[int], current: int) -> Optional[int]:
  """
  Smallest line number strictly greater than current

  Args:
    lines: Ascending line numbers
    current: Line number to search past (need not be stored)

  Returns:
    The following line number, or None when current is the last

  Examples:
    next_line_after([10, 20, 30], 10) -> 20
    next_line_after([10, 20, 30], 15) -> 20
    next_line_after([10, 20, 30], 30) -> None
  """
  index = bisect.bisect_right(lines, current)
  if index < len(lines):
    return lines[index]
  return None


def check_line(program: Dict[int, object], target: int) -> int:
  """Return target if it is a stored line, else raise LineNumberError"""
  if target not in program:
    raise LineNumberError()
  return target


# ==================== INPUT UTILITIES ====================

def parse_number_reply(reply: str) -> int:
  """
  Convert a reply to INPUT into an integer

  Only an optional minus sign followed by digits is accepted; surrounding
  whitespace is not.
  """
  if not NUMBER_REPLY_PATTERN.fullmatch(reply):
    raise InvalidNumberError()
  return int(reply)
