"""
BASIC Interpreter - Main Entry Point
An interactive interpreter for a minimal line-numbered BASIC
"""

import sys
import argparse
from pathlib import Path
from typing import Iterable, List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import BasicError, BasicSyntaxError, format_error_detail
from parsing import KEYWORDS, create_debug_parser, create_parser
from semantics import analyze_statement, pretty_print_statement
from interpreter import Console, ScriptConsole, run_session


VERSION = 'basic 1.0.0'
HISTORY_FILE = "~/.basic_history"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Interactive interpreter for a minimal line-numbered BASIC',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s                        # Interactive mode when stdin is a terminal
  %(prog)s program.bas            # Feed the lines of a file to the interpreter
  %(prog)s < program.bas          # Same, from standard input
  %(prog)s --parse program.bas    # Show how each line parses
  %(prog)s -i --debug             # Interactive mode with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='file whose lines are read as input instead of stdin'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse every input line and show its structure without executing'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace parsing and execution'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_script_lines(script_path: str) -> List[str]:
  """Read a script file, exiting with a message if it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read().splitlines()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)


def parse_lines(lines: Iterable[str], debug: bool = False) -> int:
  """Show the parsed form of each line; return the number of lines that failed"""
  parser = create_debug_parser() if debug else create_parser()
  failures = 0

  for index, text in enumerate(lines, 1):
    try:
      parsed = parser.parse_line(text)
      if parsed.is_statement:
        shown = pretty_print_statement(analyze_statement(parsed, debug, parser))
      elif parsed.kind is not None:
        shown = f"{parsed.kind} (command)"
      elif parsed.line_number is not None:
        shown = "(delete)"
      else:
        raise BasicSyntaxError(context=text)
      number = parsed.line_number if parsed.line_number is not None else "-"
      print(f"{index:4d}: [{number}] {shown}")
    except BasicError as e:
      failures += 1
      print(f"{index:4d}: {e.message}")
      detail = format_error_detail(e)
      if detail:
        print(detail)

  print(f"\n{failures} line(s) with errors")
  return failures


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run the interpreter on the lines of a file"""
  console = ScriptConsole(read_script_lines(script_path), echo=True)
  sys.exit(run_session(console, debug))


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # Setup history file
  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except (FileNotFoundError, PermissionError, OSError):
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  # Keywords are the only words worth completing
  completions = list(KEYWORDS)

  def completer(text, state):
    options = [kw for kw in completions if kw.startswith(text.upper())]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(readline.write_history_file, history_file)


def run_interactive_mode(debug: bool = False) -> None:
  """Run the interpreter on the terminal with a prompt"""
  print(f"{VERSION} - Interactive Mode")
  print("Type HELP for a summary, QUIT to leave")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  try:
    status = run_session(Console(prompt="> "), debug)
  except KeyboardInterrupt:
    print("\nGoodbye!")
    status = 0
  sys.exit(status)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for the BASIC interpreter"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script and not Path(args.script).exists():
    print(f"Error: Script file '{args.script}' does not exist")
    sys.exit(1)

  if args.parse:
    lines = read_script_lines(args.script) if args.script else sys.stdin.read().splitlines()
    sys.exit(1 if parse_lines(lines, debug=args.debug) else 0)

  if args.script:
    run_script_file(args.script, debug=args.debug)
  elif args.interactive or sys.stdin.isatty():
    run_interactive_mode(debug=args.debug)
  else:
    sys.exit(run_session(Console(), args.debug))


if __name__ == "__main__":
  main()
