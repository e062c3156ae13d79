# src/tiny_console/core/handlers/eval_handler.py
import logging

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command

logger = logging.getLogger(__name__)


@console_command(
    "eval",
    "evaluate an expression",
    params=[Param("expression", ParamType.TEXT, greedy=True)],
)
def handle_eval(console, expression: str) -> int:
    """
    Hands the expression to the host evaluator together with the eval inputs
    and the base instance, and prints a non-empty result.

    Evaluator errors surface as error records; the console does not try to
    interpret them.
    """
    result = console.evaluate(expression)
    if result is not None:
        console.print_line(str(result))
    return 0
