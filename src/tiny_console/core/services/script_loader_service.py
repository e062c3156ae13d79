# src/tiny_console/core/services/script_loader_service.py
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from tiny_console.core.errors import ScriptNotFound
from tiny_console.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION = ".lcs"


class FileScriptLoader:
    """
    Loads console scripts from disk.

    A name without an extension gets `.lcs` appended. Relative names are looked
    up in each search directory in turn (the working directory first, then the
    user script directory).
    """

    def __init__(self, search_paths: Optional[Sequence[Path]] = None):
        if search_paths is None:
            search_paths = [Path.cwd(), PathUtils.get_user_scripts_dir()]
        self.search_paths: List[Path] = [Path(p) for p in search_paths]

    @staticmethod
    def with_extension(name: str) -> str:
        return name if Path(name).suffix else name + SCRIPT_EXTENSION

    def resolve(self, name: str) -> Path:
        """Returns the script path for `name`, or raises ScriptNotFound."""
        file_name = self.with_extension(name.strip())
        candidate = Path(file_name).expanduser()
        if candidate.is_absolute():
            if candidate.is_file():
                return candidate
            raise ScriptNotFound(file_name)

        for base in self.search_paths:
            path = base / candidate
            if path.is_file():
                return path
        raise ScriptNotFound(file_name)

    def load(self, name: str) -> List[str]:
        path = self.resolve(name)
        logger.debug("Loading script %s", path)
        try:
            return path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.error("Failed to read script %s: %s", path, e)
            raise ScriptNotFound(path.name) from e
