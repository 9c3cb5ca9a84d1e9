"""
Interpreter tests: expression evaluation, statement execution,
the RUN loop and the line dispatcher
"""

import pytest
from parsing import BinaryOp, Literal, parse_expression
from semantics import analyze_statement
from error_handling import (
  BasicExit, BasicSyntaxError, DivideByZeroError, InvalidNumberError, LineNumberError,
  VariableNotDefinedError, DIVIDE_BY_ZERO, INVALID_NUMBER, LINE_NUMBER_ERROR,
  SYNTAX_ERROR, VARIABLE_NOT_DEFINED
)
from interpreter import (
  HALT, HELP_TEXT, NEXT, ExecutionState, ScriptConsole, Session, eval_expr,
  execute_statement, make_session, process_line, run_program, run_session, step
)
from stdlib import basic_div, COMPARATORS
from utilities import next_line_after, parse_number_reply


def evaluate(text, variables=None):
  return eval_expr(parse_expression(text), variables if variables is not None else {})


class TestEvaluation:
  """Test the expression evaluator"""

  @pytest.mark.parametrize("text,expected", [
      ("1+2*3", 7),
      ("(1+2)*3", 9),
      ("10-2-3", 5),
      ("20/2/2", 5),
      ("10/3", 3),
      ("2*(3+(4-1))", 12),
      ("0-7/2", -3),
  ])
  def test_arithmetic(self, text, expected):
    assert evaluate(text) == expected

  def test_variables_are_read_from_store(self):
    assert evaluate("A*B+1", {'A': 3, 'B': 4}) == 13

  def test_division_truncates_toward_zero(self):
    assert evaluate("N/2", {'N': -7}) == -3
    assert evaluate("7/M", {'M': -2}) == -3
    assert evaluate("N/M", {'N': -7, 'M': -2}) == 3

  def test_undefined_variable(self):
    with pytest.raises(VariableNotDefinedError) as exc:
      evaluate("A+1")
    assert exc.value.message == VARIABLE_NOT_DEFINED

  def test_divide_by_zero(self):
    with pytest.raises(DivideByZeroError) as exc:
      evaluate("1/(2-2)")
    assert exc.value.message == DIVIDE_BY_ZERO

  def test_evaluation_does_not_touch_store(self):
    variables = {'A': 1}
    evaluate("A+A*2", variables)
    assert variables == {'A': 1}

  def test_long_additive_chain(self):
    assert evaluate("+".join(["1"] * 1000)) == 1000

  def test_long_chain_keeps_left_associativity(self):
    assert evaluate("2000" + "-1" * 1000) == 1000
    assert evaluate("1024" + "/2" * 10) == 1

  def test_deep_left_leaning_tree(self):
    expr = Literal(0)
    for _ in range(5000):
      expr = BinaryOp("+", expr, Literal(1))
    assert eval_expr(expr, {}) == 5000

  def test_chain_reports_first_failing_operand(self):
    with pytest.raises(VariableNotDefinedError):
      evaluate("A+" + "+".join(["1"] * 1000) + "+1/0")
    with pytest.raises(DivideByZeroError):
      evaluate("+".join(["1"] * 1000) + "+1/0+A")


class TestStdlib:
  """Test built-in operators and helpers"""

  def test_basic_div(self):
    assert basic_div(9, 3) == 3
    assert basic_div(-9, 4) == -2
    assert basic_div(0, -5) == 0
    with pytest.raises(DivideByZeroError):
      basic_div(1, 0)

  def test_comparators(self):
    assert COMPARATORS['<'](1, 2)
    assert COMPARATORS['>'](2, 1)
    assert COMPARATORS['='](2, 2)
    assert not COMPARATORS['='](2, 3)

  def test_next_line_after(self):
    assert next_line_after([10, 20, 30], 10) == 20
    assert next_line_after([10, 20, 30], 15) == 20
    assert next_line_after([10, 20, 30], 30) is None

  @pytest.mark.parametrize("reply,expected", [("5", 5), ("-12", -12), ("007", 7)])
  def test_number_reply_accepted(self, reply, expected):
    assert parse_number_reply(reply) == expected

  @pytest.mark.parametrize("reply", ["", "abc", "+5", " 5", "5 ", "1.5", "--1"])
  def test_number_reply_rejected(self, reply):
    with pytest.raises(InvalidNumberError) as exc:
      parse_number_reply(reply)
    assert str(exc.value) == INVALID_NUMBER


class TestStatementExecution:
  """Test individual statement executors"""

  @pytest.fixture
  def statement(self, parser):
    def build(text):
      return analyze_statement(parser.parse_line(text))
    return build

  def test_let_assigns(self, statement, console):
    session = make_session()
    assert execute_statement(statement("LET A = 2*3"), session, console) == NEXT
    assert session.variables == {'A': 6}

  def test_print_writes_value(self, statement, console):
    session = Session(variables={'A': 4})
    execute_statement(statement("PRINT A-5"), session, console)
    assert console.output == ["-1"]

  def test_rem_and_end(self, statement, console):
    session = make_session()
    assert execute_statement(statement("10 REM anything"), session, console) == NEXT
    assert execute_statement(statement("20 END"), session, console) == HALT

  def test_goto_existing_line(self, statement, console):
    session = make_session()
    session.program[20] = statement("20 END")
    assert execute_statement(statement("10 GOTO 20"), session, console) == ("JUMP", 20)

  def test_goto_missing_line(self, statement, console):
    with pytest.raises(LineNumberError) as exc:
      execute_statement(statement("10 GOTO 99"), make_session(), console)
    assert exc.value.message == LINE_NUMBER_ERROR

  def test_if_taken_and_not_taken(self, statement, console):
    session = Session(variables={'A': 1})
    session.program[5] = statement("5 END")
    assert execute_statement(statement("10 IF A < 2 THEN 5"), session, console) == ("JUMP", 5)
    assert execute_statement(statement("10 IF A > 2 THEN 5"), session, console) == NEXT
    assert execute_statement(statement("10 IF A = 1 THEN 5"), session, console) == ("JUMP", 5)

  def test_if_not_taken_ignores_missing_target(self, statement, console):
    session = Session(variables={'A': 1})
    assert execute_statement(statement("10 IF A = 2 THEN 99"), session, console) == NEXT

  def test_if_taken_checks_target(self, statement, console):
    with pytest.raises(LineNumberError):
      execute_statement(statement("10 IF 1 = 1 THEN 99"), make_session(), console)

  def test_input_reprompts_until_number(self, statement):
    console = ScriptConsole(["abc", " 4", "-12"])
    session = make_session()
    execute_statement(statement("INPUT N"), session, console)
    assert console.output == [INVALID_NUMBER, INVALID_NUMBER]
    assert session.variables == {'N': -12}

  def test_input_end_of_input_exits_with_failure(self, statement):
    console = ScriptConsole(["x"])
    with pytest.raises(BasicExit) as exc:
      execute_statement(statement("INPUT N"), make_session(), console)
    assert exc.value.status == 1
    assert console.output == [INVALID_NUMBER]


class TestExecutionEngine:
  """Test the RUN loop"""

  def test_empty_program(self, console):
    run_program(make_session(), console)
    assert console.output == []

  def test_step_advances_to_next_stored_line(self, enter, console):
    session = enter("10 LET A = 1", "20 PRINT A")
    state = ExecutionState(pc=10, lines=session.lines)
    step(state, session, console)
    assert state.pc == 20
    step(state, session, console)
    assert state.pc is None
    assert console.output == ["1"]

  def test_step_jump_overrides_default(self, enter, console):
    session = enter("10 GOTO 30", "20 PRINT 1", "30 PRINT 2")
    state = ExecutionState(pc=10, lines=session.lines)
    step(state, session, console)
    assert state.pc == 30

  def test_loop_with_if(self, enter, console):
    session = enter(
        "10 LET A = 0",
        "20 PRINT A",
        "30 LET A = A+1",
        "40 IF A < 3 THEN 20",
        "50 END",
    )
    run_program(session, console)
    assert console.output == ["0", "1", "2"]

  def test_end_stops_program(self, enter, console):
    session = enter("10 PRINT 1", "20 END", "30 PRINT 2")
    run_program(session, console)
    assert console.output == ["1"]

  def test_runs_in_line_number_order(self, enter, console):
    session = enter("30 PRINT 3", "10 PRINT 1", "20 PRINT 2")
    run_program(session, console)
    assert console.output == ["1", "2", "3"]

  def test_runtime_error_aborts_and_keeps_effects(self, enter, console):
    session = enter("10 LET A = 5", "20 PRINT 1/0", "30 PRINT 2")
    run_program(session, console)
    assert console.output == [DIVIDE_BY_ZERO]
    assert session.variables == {'A': 5}

  def test_goto_missing_target(self, enter, console):
    session = enter("10 GOTO 999")
    run_program(session, console)
    assert console.output == [LINE_NUMBER_ERROR]

  def test_variables_persist_between_runs(self, enter, console):
    session = enter("10 LET B = B+1", "LET B = 1")
    run_program(session, console)
    run_program(session, console)
    assert session.variables == {'B': 3}


class TestDispatcher:
  """Test line dispatch rules"""

  def test_numbered_statement_is_stored_not_run(self, enter, console):
    session = enter("10 PRINT 1")
    assert console.output == []
    assert session.program[10].kind == 'PRINT'
    assert session.program[10].source == "10 PRINT 1"

  def test_immediate_statement_runs_and_is_not_stored(self, enter, console):
    session = enter("PRINT 1+1")
    assert console.output == ["2"]
    assert session.program == {}

  @pytest.mark.parametrize("text", ["END", "GOTO 10", "REM note", "IF 1 < 2 THEN 10"])
  def test_non_immediate_statements_rejected(self, enter, text):
    with pytest.raises(BasicSyntaxError):
      enter("10 END", text)

  def test_command_with_line_number_rejected(self, enter):
    with pytest.raises(BasicSyntaxError):
      enter("10 RUN")

  def test_empty_line_rejected(self, enter):
    with pytest.raises(BasicSyntaxError):
      enter("")
    with pytest.raises(BasicSyntaxError):
      enter("   ")

  def test_bare_number_deletes_line(self, enter):
    session = enter("10 PRINT 1", "20 PRINT 2", "10")
    assert sorted(session.program) == [20]

  def test_deleting_absent_line_is_silent(self, enter, console):
    session = enter("99")
    assert session.program == {}
    assert console.output == []

  def test_reentering_line_replaces_it(self, enter, console):
    enter("10 PRINT 1", "10 PRINT 2", "LIST")
    assert console.output == ["10 PRINT 2"]

  def test_failed_line_leaves_program_untouched(self, enter):
    session = enter("10 PRINT 1")
    with pytest.raises(BasicSyntaxError):
      enter("10 PRINT (")
    assert session.program[10].source == "10 PRINT 1"

  def test_reserved_let_target(self, enter):
    with pytest.raises(BasicSyntaxError):
      enter("10 LET PRINT = 1")

  def test_list_ascending(self, enter, console):
    enter("30 END", "010 LET A = 1", "20 PRINT A", "LIST")
    assert console.output == ["010 LET A = 1", "20 PRINT A", "30 END"]

  def test_clear_replaces_session(self, enter, console):
    before = enter("10 PRINT 1", "LET A = 1")
    after = enter("CLEAR")
    assert after is not before
    assert after.program == {}
    assert after.variables == {}

  def test_quit(self, enter):
    with pytest.raises(BasicExit) as exc:
      enter("QUIT")
    assert exc.value.status == 0

  def test_help(self, enter, console):
    enter("HELP")
    assert console.output == [HELP_TEXT]

  def test_goto_target_with_leading_zeros(self, parser, console):
    session = make_session()
    for text in ["10 GOTO 030", "20 PRINT 1", "30 PRINT 3", "RUN"]:
      session = process_line(text, session, console, parser)
    assert console.output == ["3"]


class TestDeepExpressions:
  """Test that oversized expressions are reported without ending the session"""

  def test_moderate_nesting_evaluates(self):
    console = ScriptConsole(["PRINT " + "(" * 20 + "1" + ")" * 20, "PRINT 7"])
    assert run_session(console) == 0
    assert console.output == ["1", "7"]

  def test_excessive_nesting_is_syntax_error(self):
    console = ScriptConsole(["PRINT " + "(" * 500 + "1" + ")" * 500, "PRINT 7"])
    assert run_session(console) == 0
    assert console.output == [SYNTAX_ERROR, "7"]

  def test_long_chain_in_stored_program(self):
    console = ScriptConsole(["10 PRINT " + "+".join(["1"] * 1000), "RUN", "PRINT 7"])
    assert run_session(console) == 0
    assert console.output == ["1000", "7"]
