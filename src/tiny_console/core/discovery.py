# src/tiny_console/core/discovery.py
import importlib.util
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tiny_console.core.command_registry import Param
from tiny_console.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerSpec:
    """Registration data attached to a `handle_*` function."""
    path: str
    description: str
    params: Tuple[Param, ...] = ()
    # (argument index, console -> suggestion values)
    sources: Tuple[Tuple[int, Callable[[Any], Iterable[str]]], ...] = ()


def console_command(
        path: str,
        description: str = "",
        params: Sequence[Param] = (),
        sources: Optional[Dict[int, Callable[[Any], Iterable[str]]]] = None,
):
    """
    Marks a handler function as a console command.

    The decorated function receives the ConsoleEngine as its first argument,
    followed by the coerced argument values. `sources` maps an argument index
    to a function of the console that returns suggestions for it.
    """
    def decorate(func: Callable) -> Callable:
        func.command_spec = HandlerSpec(
            path=path,
            description=description,
            params=tuple(params),
            sources=tuple(sorted((sources or {}).items(), key=lambda item: item[0])),
        )
        return func
    return decorate


def _spec_for(attr_name: str, func: Callable) -> HandlerSpec:
    spec = getattr(func, "command_spec", None)
    if isinstance(spec, HandlerSpec):
        return spec
    doc = inspect.getdoc(func) or ""
    return HandlerSpec(path=attr_name[len("handle_"):], description=doc.splitlines()[0] if doc else "")


def discover_handlers(handlers_dir: Optional[Path] = None) -> List[Tuple[HandlerSpec, Callable]]:
    """
    Scans the handlers directory (recursively) for `*_handler.py` modules,
    loads them and returns every `handle_*` function with its HandlerSpec.
    """
    handlers_dir = handlers_dir or PathUtils.get_handlers_dir()
    base_module_path = "tiny_console.core.handlers"
    discovered: List[Tuple[HandlerSpec, Callable]] = []

    logger.debug("Scanning for handlers in: '%s'", handlers_dir)
    if not handlers_dir.is_dir():
        logger.warning("Handlers directory not found, skipping: %s", handlers_dir)
        return discovered

    for file_path in sorted(handlers_dir.glob("**/*_handler.py")):
        try:
            relative_parts = list(file_path.relative_to(handlers_dir).parts)
            relative_parts[-1] = file_path.stem
            module_name = f"{base_module_path}.{'.'.join(relative_parts)}"

            spec = importlib.util.spec_from_file_location(module_name, file_path)
            if not spec or not spec.loader:
                raise ImportError(f"Could not create spec for {file_path}")

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

            for attr_name in sorted(dir(module)):
                if not attr_name.startswith("handle_"):
                    continue
                handler_func = getattr(module, attr_name)
                if callable(handler_func):
                    discovered.append((_spec_for(attr_name, handler_func), handler_func))
                    logger.debug("Discovered command '%s'", attr_name[len("handle_"):])

        except Exception as e:
            logger.error("Failed to load handler module %s: %s", file_path.name, e, exc_info=True)

    return discovered
