"""
BASIC Statement Analysis
Static validation of statement arguments, run once when a line is entered
"""

from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass

from error_handling import BasicSyntaxError
from parsing import BasicParser, ParsedLine, STATEMENT_KINDS, check_name, parse_expression, pretty_print_expr


# Statements that may be executed without a line number
IMMEDIATE_KINDS = ('LET', 'PRINT', 'INPUT')


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class Statement:
  """A validated statement together with the text it was entered as"""
  kind: str
  args: Dict[str, Any]
  source: str


def is_storable(kind: str) -> bool:
  return kind in STATEMENT_KINDS


def is_immediate(kind: str) -> bool:
  return kind in IMMEDIATE_KINDS


# ============================================================================
# VALIDATION
# ============================================================================

def analyze_rem(raw_args: Dict[str, str]) -> Dict[str, Any]:
  return {'text': raw_args.get('text', '')}


def analyze_let(raw_args: Dict[str, str], parse: Callable = parse_expression) -> Dict[str, Any]:
  return {
      'name': check_name(raw_args['name']),
      'expr': parse(raw_args['expr']),
  }


def analyze_print(raw_args: Dict[str, str], parse: Callable = parse_expression) -> Dict[str, Any]:
  return {'expr': parse(raw_args['expr'])}


def analyze_input(raw_args: Dict[str, str]) -> Dict[str, Any]:
  return {'name': check_name(raw_args['name'])}


def analyze_end(raw_args: Dict[str, str]) -> Dict[str, Any]:
  return {}


def analyze_goto(raw_args: Dict[str, str]) -> Dict[str, Any]:
  # Existence of the target is checked when the jump happens
  return {'target': int(raw_args['target'])}


def analyze_if(raw_args: Dict[str, str], parse: Callable = parse_expression) -> Dict[str, Any]:
  return {
      'left': parse(raw_args['left']),
      'cmp': raw_args['cmp'],
      'right': parse(raw_args['right']),
      'target': int(raw_args['target']),
  }


def analyze_arguments(kind: str, raw_args: Dict[str, str],
                      parse: Callable = parse_expression) -> Dict[str, Any]:
  """Validate the raw argument text of one statement kind; parse turns expression text into a tree"""
  if kind == 'REM':
    return analyze_rem(raw_args)
  elif kind == 'LET':
    return analyze_let(raw_args, parse)
  elif kind == 'PRINT':
    return analyze_print(raw_args, parse)
  elif kind == 'INPUT':
    return analyze_input(raw_args)
  elif kind == 'END':
    return analyze_end(raw_args)
  elif kind == 'GOTO':
    return analyze_goto(raw_args)
  elif kind == 'IF':
    return analyze_if(raw_args, parse)
  else:
    raise BasicSyntaxError(context=str(kind))


def analyze_statement(parsed: ParsedLine, debug: bool = False,
                      parser: Optional[BasicParser] = None) -> Statement:
  """
  Build a Statement from a parsed line, running its static validation.
  Expressions go through parser when given, so its debug tracing applies.
  """
  if not parsed.is_statement:
    raise BasicSyntaxError(context=parsed.source)

  parse = parser.parse_expression if parser is not None else parse_expression
  args = analyze_arguments(parsed.kind, parsed.args, parse)
  statement = Statement(parsed.kind, args, parsed.source)

  if debug:
    print(f"Analyzed statement: {pretty_print_statement(statement)}")

  return statement


# ============================================================================
# DISPLAY
# ============================================================================

def pretty_print_statement(statement: Statement) -> str:
  """One-line rendering of a statement with its expression trees"""
  parts = [statement.kind]
  for name, value in statement.args.items():
    if isinstance(value, str):
      parts.append(f"{name}={value!r}")
    elif isinstance(value, int):
      parts.append(f"{name}={value}")
    else:
      parts.append(f"{name}={pretty_print_expr(value)}")
  return " ".join(parts)
