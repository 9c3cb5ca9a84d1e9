"""
BASIC Line Parser
Line grammar, expression parser and name validation built on pyparsing
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field
import re

# Import pyparsing with error handling
try:
    from pyparsing import (
        Forward, Keyword, MatchFirst, Optional as PyParsingOptional, ParseException,
        ParserElement, Regex, StringEnd, Suppress, White, infix_notation, one_of, OpAssoc
    )
    # Enable packrat parsing for performance
    ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from error_handling import BasicSyntaxError, enhance_parse_exception


# ============================================================================
# KEYWORDS
# ============================================================================

# Declaration order is the order alternatives are tried in
STATEMENT_KINDS = ('REM', 'LET', 'PRINT', 'INPUT', 'END', 'GOTO', 'IF')
COMMAND_KINDS = ('RUN', 'LIST', 'CLEAR', 'QUIT', 'HELP')
KEYWORDS = STATEMENT_KINDS + ('THEN',) + COMMAND_KINDS

# Text following each statement keyword
STATEMENT_ARGUMENTS = {
    'REM': r"(?P<text>.*)",
    'LET': r"(?P<name>\S+)\s+=\s+(?P<expr>.+)",
    'PRINT': r"(?P<expr>.+)",
    'INPUT': r"(?P<name>\S+)",
    'END': None,
    'GOTO': r"(?P<target>\d+)",
    'IF': r"(?P<left>.+)\s+(?P<cmp>[<>=])\s+(?P<right>.+)\s+THEN\s+(?P<target>\d+)",
}

ARGUMENT_NAMES = ('text', 'name', 'expr', 'target', 'left', 'cmp', 'right')

NAME_PATTERN = re.compile(r'[A-Za-z0-9]+')


def check_name(name: str) -> str:
    """Return name unchanged if it is a usable variable name, else raise"""
    if name in KEYWORDS:
        raise BasicSyntaxError(context=name)
    if not NAME_PATTERN.fullmatch(name):
        raise BasicSyntaxError(context=name)
    return name


# ============================================================================
# EXPRESSION AST
# ============================================================================

@dataclass(frozen=True)
class Literal:
    """Non-negative integer literal"""
    value: int


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Group:
    """Parenthesised subexpression"""
    inner: Any


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Any
    right: Any


def fold_left(tokens) -> BinaryOp:
    """Turn [a, op, b, op, c] into ((a op b) op c)"""
    items = tokens[0]
    node = items[0]
    for i in range(1, len(items), 2):
        node = BinaryOp(items[i], node, items[i + 1])
    return node


# ============================================================================
# PARSED LINE
# ============================================================================

@dataclass(frozen=True)
class ParsedLine:
    """One input line split into its optional line number, keyword and raw argument text"""
    source: str
    line_number: Optional[int] = None
    kind: Optional[str] = None
    args: Dict[str, str] = field(default_factory=dict)

    @property
    def is_command(self) -> bool:
        return self.kind in COMMAND_KINDS

    @property
    def is_statement(self) -> bool:
        return self.kind in STATEMENT_KINDS


# ============================================================================
# GRAMMAR
# ============================================================================

class BasicGrammar:
    """BASIC grammar definition using pyparsing"""

    def __init__(self):
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the expression grammar and the composite line grammar"""

        expression = Forward()

        # An all-digit token is a literal; anything else alphanumeric is a name
        integer = Regex(r'\d+(?![A-Za-z0-9])').set_parse_action(lambda t: Literal(int(t[0])))
        variable = Regex(r'[A-Za-z0-9]+').set_parse_action(lambda t: Variable(check_name(t[0])))
        parenthesized = (Suppress("(") + expression + Suppress(")")).set_parse_action(lambda t: Group(t[0]))

        operand = integer | variable | parenthesized

        # Highest precedence first
        expression <<= infix_notation(operand, [
            (one_of("* /"), 2, OpAssoc.LEFT, fold_left),
            (one_of("+ -"), 2, OpAssoc.LEFT, fold_left),
        ])

        line_number = Regex(r'\d+')("line_number")

        alternatives = []
        for kind in STATEMENT_KINDS:
            element = Keyword(kind)("kind")
            pattern = STATEMENT_ARGUMENTS[kind]
            if pattern is not None:
                element = element + Regex(pattern)
            alternatives.append(element)
        for kind in COMMAND_KINDS:
            alternatives.append(Keyword(kind)("kind"))

        body = MatchFirst(alternatives)
        # A line may not start with whitespace
        line = ~White(" \t") + PyParsingOptional(line_number) + PyParsingOptional(body) + StringEnd()

        # Store the main parsers
        self.expression = expression
        self.line = line

    def parse_expression(self, text: str):
        """Parse an arithmetic expression into its AST"""
        text = text.strip()
        try:
            result = self.expression.parse_string(text, parse_all=True)
        except ParseException as e:
            raise enhance_parse_exception(e, text) from e
        except RecursionError:
            # Nesting too deep for the parser
            raise BasicSyntaxError(context=text)
        return result[0]

    def parse_line(self, text: str) -> ParsedLine:
        """Split a raw input line into line number, kind and argument text"""
        try:
            result = self.line.parse_string(text, parse_all=True)
        except ParseException as e:
            raise enhance_parse_exception(e, text) from e

        line_number = result.get("line_number")
        args = {name: result[name] for name in ARGUMENT_NAMES if name in result}
        return ParsedLine(
            source=text,
            line_number=int(line_number) if line_number is not None else None,
            kind=result.get("kind"),
            args=args,
        )


_default_grammar: Optional[BasicGrammar] = None


def default_grammar() -> BasicGrammar:
    """Shared grammar instance, built on first use"""
    global _default_grammar
    if _default_grammar is None:
        _default_grammar = BasicGrammar()
    return _default_grammar


def parse_expression(text: str):
    return default_grammar().parse_expression(text)


# ============================================================================
# PARSER
# ============================================================================

class BasicParser:
    """Line parser with optional debug tracing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = default_grammar()

    def parse_line(self, text: str) -> ParsedLine:
        parsed = self.grammar.parse_line(text)
        if self.debug:
            print(f"Parsed line: number={parsed.line_number} kind={parsed.kind} args={parsed.args}")
        return parsed

    def parse_expression(self, text: str):
        expr = self.grammar.parse_expression(text)
        if self.debug:
            print(f"Parsed expression: {pretty_print_expr(expr)}")
        return expr


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> BasicParser:
    """Create a BASIC line parser"""
    return BasicParser(debug=debug)


def create_debug_parser() -> BasicParser:
    """Create a BASIC line parser with debug enabled"""
    return BasicParser(debug=True)


# Utility functions for working with expression trees
def pretty_print_expr(expr) -> str:
    """Render an expression tree in prefix form"""
    if isinstance(expr, Literal):
        return str(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Group):
        return f"(group {pretty_print_expr(expr.inner)})"
    if isinstance(expr, BinaryOp):
        # Left spines of long chains are walked without recursion
        spine = []
        while isinstance(expr, BinaryOp):
            spine.append(expr)
            expr = expr.left
        text = pretty_print_expr(expr)
        for node in reversed(spine):
            text = f"({node.op} {text} {pretty_print_expr(node.right)})"
        return text
    return repr(expr)
