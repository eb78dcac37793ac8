"""File system access confined to the dx state directory.

Every path is validated before any I/O happens. Relative paths resolve under
the sandbox root, ``~`` expands to the configured home directory, and
symlinks are resolved so they cannot be used to escape the root.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from dx.infra.errors import AccessDeniedError
from dx.utils.paths import expand_home


class SandboxedFileSystem:
    """Read/write access restricted to one directory tree plus named files.

    Attributes:
        root: Directory all reads and writes must stay within
        home: Directory ``~`` expands to
    """

    def __init__(
        self,
        root: Path,
        *,
        allowed_files: Iterable[Path] = (),
        home: Path | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.home = Path(home) if home is not None else Path.home()
        self._allowed_files = {Path(p).resolve() for p in allowed_files}

    def resolve(self, path: str | Path) -> Path:
        """Return the absolute path for ``path`` if access is allowed.

        Raises:
            AccessDeniedError: If the path is empty or outside the sandbox
        """
        if not str(path):
            raise AccessDeniedError(path)

        candidate = expand_home(path, self.home)
        if not candidate.is_absolute():
            candidate = self.root / candidate

        try:
            resolved = candidate.resolve()
        except (OSError, RuntimeError) as e:
            # Symlink loops, or traversal through a regular file
            raise AccessDeniedError(path) from e

        if resolved == self.root or self.root in resolved.parents:
            return resolved
        if resolved in self._allowed_files:
            return resolved
        raise AccessDeniedError(path)

    def mkdir_all(self, path: str | Path, mode: int = 0o755) -> Path:
        target = self.resolve(path)
        target.mkdir(mode=mode, parents=True, exist_ok=True)
        return target

    def write_file(self, path: str | Path, content: bytes | str, mode: int = 0o644) -> Path:
        """Write ``content`` to ``path``, creating parent directories."""
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode() if isinstance(content, str) else content
        target.write_bytes(data)
        target.chmod(mode)
        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return target

    def read_file(self, path: str | Path) -> bytes:
        return self.resolve(path).read_bytes()

    def file_exists(self, path: str | Path) -> bool:
        return self.resolve(path).exists()

    def remove_all(self, path: str | Path) -> None:
        """Remove a file or directory tree. Missing paths are not an error."""
        target = self.resolve(path)
        if target == self.root:
            raise AccessDeniedError(path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
