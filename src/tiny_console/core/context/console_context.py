# src/tiny_console/core/context/console_context.py
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# (expression, variable names, variable values, base instance) -> textual result
Evaluator = Callable[[str, List[str], List[Any], Optional[Any]], Any]


class ConsoleContext:
    """
    Host-facing state of a console session: the eval inputs, the base
    instance used for unqualified member access, and the hooks through which
    built-ins ask the host to act (clear the screen, quit, drop persisted
    history).
    """

    def __init__(self):
        self._eval_inputs: Dict[str, Any] = {}
        self.base_instance: Optional[Any] = None
        self.evaluator: Optional[Evaluator] = None

        self.on_clear: Optional[Callable[[], None]] = None
        self.on_quit: Optional[Callable[[], None]] = None
        self.on_history_erased: Optional[Callable[[], None]] = None

        self.quit_requested = False

    # --- Eval inputs ---

    def add_eval_input(self, name: str, value: Any) -> None:
        """Registers a variable that eval expressions can refer to by name."""
        self._eval_inputs[name] = value

    def remove_eval_input(self, name: str) -> bool:
        if name in self._eval_inputs:
            del self._eval_inputs[name]
            return True
        return False

    def eval_input_names(self) -> List[str]:
        return list(self._eval_inputs.keys())

    def eval_inputs(self) -> Tuple[List[str], List[Any]]:
        """Names and values in registration order, ready to hand to an evaluator."""
        return list(self._eval_inputs.keys()), list(self._eval_inputs.values())

    # --- Host requests ---

    def request_clear(self) -> None:
        if self.on_clear is not None:
            self.on_clear()

    def request_quit(self) -> None:
        self.quit_requested = True
        if self.on_quit is not None:
            self.on_quit()

    def notify_history_erased(self) -> None:
        if self.on_history_erased is not None:
            self.on_history_erased()

    def __repr__(self) -> str:
        return (
            f"<ConsoleContext eval_inputs={len(self._eval_inputs)} "
            f"base_instance={type(self.base_instance).__name__ if self.base_instance is not None else 'None'}>"
        )
