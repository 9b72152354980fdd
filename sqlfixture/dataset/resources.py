"""Resolution of dataset and SQL resources.

A location is looked up relative to the namespace directory of the test
(the directory of its module) first, then in each configured search path.
A ``classpath:`` prefix skips the namespace lookup.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

CLASSPATH_PREFIX = "classpath:"


def _is_file(path: Path) -> bool:
    # Literal SQL passed as a location can produce names the OS rejects
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False


class ResourceLocator:
    """Finds files for declaration locations."""

    def __init__(
        self,
        search_paths: Sequence[Union[str, Path]] = (),
        root_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """Initialize the locator.

        Args:
            search_paths: Generic search directories; relative entries are
                resolved against ``root_dir``.
            root_dir: Base directory for relative search paths (default: cwd).
        """
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self.search_paths: List[Path] = []
        for entry in search_paths:
            path = Path(entry)
            self.search_paths.append(path if path.is_absolute() else self.root_dir / path)

    @staticmethod
    def strip_prefix(location: str) -> str:
        location = location.strip()
        if location.startswith(CLASSPATH_PREFIX):
            location = location[len(CLASSPATH_PREFIX):].lstrip("/")
        return location

    def resolve_relative(self, namespace_dir: Optional[Path], location: str) -> Optional[Path]:
        """Resolve ``location`` against the namespace directory only."""
        if not location or not location.strip() or namespace_dir is None:
            return None
        if location.strip().startswith(CLASSPATH_PREFIX):
            return None
        candidate = Path(namespace_dir) / location.strip()
        return candidate if _is_file(candidate) else None

    def resolve_generic(self, location: str) -> Optional[Path]:
        """Resolve ``location`` as an absolute path or against the search paths."""
        if not location or not location.strip():
            return None
        name = self.strip_prefix(location)
        if not name:
            return None
        direct = Path(name)
        if direct.is_absolute():
            return direct if _is_file(direct) else None
        for search_path in self.search_paths:
            candidate = search_path / name
            if _is_file(candidate):
                return candidate
        return None

    def resolve(self, namespace_dir: Optional[Path], location: str) -> Optional[Path]:
        """Resolve ``location``: namespace-relative first, then generic. None when not found."""
        path = self.resolve_relative(namespace_dir, location) or self.resolve_generic(location)
        if path is None:
            logger.debug(f"Resource '{location}' not found (namespace: {namespace_dir})")
        return path

    def resolve_directory(self, namespace_dir: Optional[Path], location: str) -> Optional[Path]:
        """Like :meth:`resolve` but for directories (CSV datasets)."""
        if not location or not location.strip():
            return None
        name = self.strip_prefix(location)
        candidates: List[Path] = []
        if namespace_dir is not None and not location.strip().startswith(CLASSPATH_PREFIX):
            candidates.append(Path(namespace_dir) / name)
        if Path(name).is_absolute():
            candidates.append(Path(name))
        else:
            candidates.extend(search_path / name for search_path in self.search_paths)
        for candidate in candidates:
            try:
                if candidate.is_dir():
                    return candidate
            except (OSError, ValueError):
                continue
        return None
