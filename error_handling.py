"""
Error types for the BASIC interpreter
Every user-visible error is a short fixed message; parse detail is kept for debug output
"""

from typing import Optional
from pyparsing import ParseException


# ============================================================================
# MESSAGES
# ============================================================================

DIVIDE_BY_ZERO = 'DIVIDE BY ZERO'
INVALID_NUMBER = 'INVALID NUMBER'
LINE_NUMBER_ERROR = 'LINE NUMBER ERROR'
SYNTAX_ERROR = 'SYNTAX ERROR'
VARIABLE_NOT_DEFINED = 'VARIABLE NOT DEFINED'


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class BasicError(Exception):
    """Base class for errors reported to the user as a single line"""
    default_message = SYNTAX_ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class BasicEarlyError(BasicError):
    """Raised while parsing or validating a line, before anything is evaluated"""


class BasicSyntaxError(BasicEarlyError):
    """Malformed line, reserved or invalid name, unbalanced parentheses"""
    default_message = SYNTAX_ERROR

    def __init__(self, message: Optional[str] = None, column: int = 0, context: str = ""):
        self.column = column
        self.context = context
        super().__init__(message)


class BasicRuntimeError(BasicError):
    """Raised while a statement executes"""


class DivideByZeroError(BasicRuntimeError):
    default_message = DIVIDE_BY_ZERO


class VariableNotDefinedError(BasicRuntimeError):
    default_message = VARIABLE_NOT_DEFINED


class LineNumberError(BasicRuntimeError):
    default_message = LINE_NUMBER_ERROR


class InvalidNumberError(BasicRuntimeError):
    """Reply to INPUT is not an integer; the prompt is repeated"""
    default_message = INVALID_NUMBER


class BasicExit(Exception):
    """Request to terminate the process with the given status"""
    def __init__(self, status: int = 0):
        self.status = status
        super().__init__(f"exit {status}")


# ============================================================================
# PARSE EXCEPTION CONVERSION
# ============================================================================

def enhance_parse_exception(exc: ParseException, source_text: str) -> BasicSyntaxError:
    """Convert a pyparsing exception to a BasicSyntaxError keeping its location"""
    return BasicSyntaxError(column=exc.column, context=source_text)


def format_error_detail(error: BasicError) -> str:
    """Render the location of a syntax error under its source line, or '' if unknown"""
    if not isinstance(error, BasicSyntaxError) or not error.context:
        return ""
    caret_col = max(error.column, 1)
    return f"  {error.context}\n  {' ' * (caret_col - 1)}^ column {caret_col}"
