"""
BASIC Interpreter
Expression evaluation, statement execution, the RUN loop and the line dispatcher
Side effects (console I/O, process exit) handled at boundaries
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field

from error_handling import (
  BasicError,
  BasicExit,
  BasicRuntimeError,
  BasicSyntaxError,
  InvalidNumberError,
  VariableNotDefinedError,
  format_error_detail
)
from parsing import BasicParser, BinaryOp, Group, Literal, Variable, create_debug_parser, create_parser
from semantics import Statement, analyze_statement, is_immediate, is_storable
from stdlib import BUILTIN_OPERATORS, COMPARATORS
from utilities import check_line, next_line_after, parse_number_reply, sorted_lines


HELP_TEXT = "Yet another basic interpreter"
INPUT_PROMPT = " ? "


# ============================================================================
# CONSOLE
# ============================================================================

class Console:
  """Line reader and output sink on standard input and output"""

  def __init__(self, prompt: str = ""):
    self.prompt = prompt

  def read_line(self, prompt: Optional[str] = None) -> Optional[str]:
    """Next input line without its newline, or None at end of input"""
    try:
      return input(self.prompt if prompt is None else prompt)
    except EOFError:
      return None

  def write_line(self, text: str) -> None:
    print(text)


class ScriptConsole(Console):
  """
  Console fed from a sequence of lines.
  Output is echoed to stdout when echo is set, otherwise collected in output.
  """

  def __init__(self, lines: Iterable[str], echo: bool = False):
    super().__init__()
    self._lines = iter(lines)
    self.echo = echo
    self.output: List[str] = []

  def read_line(self, prompt: Optional[str] = None) -> Optional[str]:
    if self.echo and prompt:
      print(prompt, end='')
    line = next(self._lines, None)
    if line is None:
      return None
    return line.rstrip('\r\n')

  def write_line(self, text: str) -> None:
    if self.echo:
      print(text)
    else:
      self.output.append(text)


# ============================================================================
# SESSION STATE
# ============================================================================

@dataclass
class Session:
  """Stored program and variable store; replaced as a whole by CLEAR"""
  program: Dict[int, Statement] = field(default_factory=dict)
  variables: Dict[str, int] = field(default_factory=dict)

  @property
  def lines(self) -> List[int]:
    return sorted_lines(self.program)


def make_session() -> Session:
  return Session()


@dataclass
class ExecutionState:
  """Program counter of a RUN in progress; pc is None once the program stops"""
  pc: Optional[int]
  lines: List[int]


# Effects returned by statement executors
NEXT = ("NEXT", None)
HALT = ("HALT", None)


def make_jump(line: int) -> Tuple[str, Any]:
  return ("JUMP", line)


# ============================================================================
# EXPRESSION EVALUATION
# ============================================================================

def eval_expr(expr, variables: Dict[str, int]) -> int:
  """Evaluate an expression tree against the variable store"""
  if isinstance(expr, Literal):
    return expr.value
  elif isinstance(expr, Variable):
    if expr.name not in variables:
      raise VariableNotDefinedError()
    return variables[expr.name]
  elif isinstance(expr, Group):
    return eval_expr(expr.inner, variables)
  elif isinstance(expr, BinaryOp):
    # Chains fold into left-leaning trees; walk the left spine in a loop
    spine = []
    while isinstance(expr, BinaryOp):
      spine.append(expr)
      expr = expr.left
    value = eval_expr(expr, variables)
    for node in reversed(spine):
      right = eval_expr(node.right, variables)
      value = BUILTIN_OPERATORS[node.op](value, right)
    return value
  else:
    raise TypeError(f"Unknown expression node: {expr!r}")


# ============================================================================
# STATEMENT EXECUTION
# ============================================================================

def exec_let(args: Dict[str, Any], session: Session, console: Console) -> Tuple[str, Any]:
  session.variables[args['name']] = eval_expr(args['expr'], session.variables)
  return NEXT


def exec_print(args: Dict[str, Any], session: Session, console: Console) -> Tuple[str, Any]:
  console.write_line(str(eval_expr(args['expr'], session.variables)))
  return NEXT


def exec_input(args: Dict[str, Any], session: Session, console: Console) -> Tuple[str, Any]:
  """Prompt until the reply is an integer; end of input terminates with failure"""
  while True:
    reply = console.read_line(INPUT_PROMPT)
    if reply is None:
      raise BasicExit(1)
    try:
      value = parse_number_reply(reply)
      break
    except InvalidNumberError as e:
      console.write_line(e.message)

  session.variables[args['name']] = value
  return NEXT


def exec_goto(args: Dict[str, Any], session: Session, console: Console) -> Tuple[str, Any]:
  return make_jump(check_line(session.program, args['target']))


def exec_if(args: Dict[str, Any], session: Session, console: Console) -> Tuple[str, Any]:
  left = eval_expr(args['left'], session.variables)
  right = eval_expr(args['right'], session.variables)
  if COMPARATORS[args['cmp']](left, right):
    return make_jump(check_line(session.program, args['target']))
  return NEXT


def execute_statement(statement: Statement, session: Session, console: Console,
                      debug: bool = False) -> Tuple[str, Any]:
  """Run one statement and return its effect on the program counter"""
  if debug:
    print(f"Executing: {statement.kind}")

  kind = statement.kind

  if kind == 'REM':
    return NEXT
  elif kind == 'LET':
    return exec_let(statement.args, session, console)
  elif kind == 'PRINT':
    return exec_print(statement.args, session, console)
  elif kind == 'INPUT':
    return exec_input(statement.args, session, console)
  elif kind == 'END':
    return HALT
  elif kind == 'GOTO':
    return exec_goto(statement.args, session, console)
  elif kind == 'IF':
    return exec_if(statement.args, session, console)
  else:
    raise BasicSyntaxError(context=statement.source)


# ============================================================================
# EXECUTION ENGINE
# ============================================================================

def step(state: ExecutionState, session: Session, console: Console, debug: bool = False) -> None:
  """Execute the statement at the program counter and advance it"""
  statement = session.program[state.pc]

  # Taken before executing so a jump can override it
  default_next = next_line_after(state.lines, state.pc)

  effect, target = execute_statement(statement, session, console, debug)

  if effect == "HALT":
    state.pc = None
  elif effect == "JUMP":
    if debug:
      print(f"[RUN] jump {state.pc} -> {target}")
    state.pc = target
  else:
    state.pc = default_next


def run_program(session: Session, console: Console, debug: bool = False) -> None:
  """Execute the stored program from its lowest line until it ends or fails"""
  lines = session.lines
  if not lines:
    return

  state = ExecutionState(pc=lines[0], lines=lines)
  try:
    while state.pc is not None:
      if debug:
        print(f"[RUN] line {state.pc}")
      step(state, session, console, debug)
  except BasicRuntimeError as e:
    if debug:
      print(f"[RUN] aborted at line {state.pc}: {e.message}")
    console.write_line(e.message)


# ============================================================================
# COMMANDS
# ============================================================================

def list_program(session: Session, console: Console) -> None:
  for line in session.lines:
    console.write_line(session.program[line].source)


def execute_command(kind: str, session: Session, console: Console, debug: bool = False) -> Session:
  """Run a command and return the session to continue with"""
  if kind == 'RUN':
    run_program(session, console, debug)
  elif kind == 'LIST':
    list_program(session, console)
  elif kind == 'CLEAR':
    return make_session()
  elif kind == 'QUIT':
    raise BasicExit(0)
  elif kind == 'HELP':
    console.write_line(HELP_TEXT)
  else:
    raise BasicSyntaxError(context=kind)
  return session


# ============================================================================
# DISPATCHER
# ============================================================================

def process_line(text: str, session: Session, console: Console,
                 parser: Optional[BasicParser] = None, debug: bool = False) -> Session:
  """
  Handle one input line and return the session to continue with.
  Store, delete, execute immediately or run a command depending on what matched.
  """
  if parser is None:
    parser = create_debug_parser() if debug else create_parser()

  parsed = parser.parse_line(text)

  if parsed.kind is None:
    if parsed.line_number is None:
      raise BasicSyntaxError(context=text)
    session.program.pop(parsed.line_number, None)
    return session

  if parsed.is_command:
    if parsed.line_number is not None:
      raise BasicSyntaxError(context=text)
    return execute_command(parsed.kind, session, console, debug)

  if parsed.line_number is not None:
    if not is_storable(parsed.kind):
      raise BasicSyntaxError(context=text)
    session.program[parsed.line_number] = analyze_statement(parsed, debug, parser)
    return session

  if not is_immediate(parsed.kind):
    raise BasicSyntaxError(context=text)
  statement = analyze_statement(parsed, debug, parser)
  execute_statement(statement, session, console, debug)
  return session


# ============================================================================
# TOP-LEVEL LOOP
# ============================================================================

class BasicInterpreter:
  """Owns the session and feeds it input lines from a console"""

  def __init__(self, console: Optional[Console] = None, debug: bool = False):
    self.console = console or Console()
    self.debug = debug
    self.parser = create_debug_parser() if debug else create_parser()
    self.session = make_session()

  def feed(self, text: str) -> None:
    """Process one line, reporting errors the way the read loop does"""
    try:
      self.session = process_line(text, self.session, self.console, self.parser, self.debug)
    except BasicError as e:
      self.console.write_line(e.message)
      if self.debug:
        detail = format_error_detail(e)
        if detail:
          print(detail)

  def run(self) -> int:
    """Read lines until end of input or QUIT; return the exit status"""
    while True:
      text = self.console.read_line()
      if text is None:
        return 0
      try:
        self.feed(text)
      except BasicExit as e:
        return e.status


def create_interpreter(console: Optional[Console] = None, debug: bool = False) -> BasicInterpreter:
  """Factory function returning an interpreter"""
  return BasicInterpreter(console, debug)


def create_debug_interpreter(console: Optional[Console] = None) -> BasicInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(console, debug=True)


def run_session(console: Console, debug: bool = False) -> int:
  return create_interpreter(console, debug).run()
