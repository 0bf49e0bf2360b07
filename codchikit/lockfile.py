"""Config files that are locked while they are open."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable, TypeVar

import portalocker

_log = logging.getLogger(__name__)

T = TypeVar("T")


class LockedConfig:
    """An open config file, holding a shared (read) or exclusive (write) lock until closed."""

    def __init__(self, handle: BinaryIO, path: Path) -> None:
        self._file: BinaryIO | None = handle
        self.path = path

    @classmethod
    def open(cls, path: str | Path, write_mode: bool) -> tuple[LockedConfig, str]:
        """Open and lock ``path`` and return the lock with the file's content.

        The file is created empty if it does not exist yet.
        """
        path = Path(path)
        if not path.exists():
            path.touch()
        handle = open(path, "r+b" if write_mode else "rb")
        try:
            portalocker.lock(handle, portalocker.LOCK_EX if write_mode else portalocker.LOCK_SH)
            content = handle.read().decode("utf-8")
            handle.seek(0)
        except BaseException:
            handle.close()
            raise
        return cls(handle, path), content

    @classmethod
    def open_parse(
        cls,
        path: str | Path,
        write_mode: bool,
        parse: Callable[[str], T],
        default: Callable[[], T],
    ) -> tuple[LockedConfig, T]:
        """Like :meth:`open`, but parse the content; fall back to ``default()``
        when the file is empty or cannot be parsed."""
        lock, content = cls.open(path, write_mode)
        try:
            if content:
                try:
                    value = parse(content)
                except Exception as err:
                    _log.warning(
                        "Failed parsing config at '%s':\n%s\n Using default value.", path, err
                    )
                    value = default()
            else:
                value = default()
        except BaseException:
            lock.close()
            raise
        return lock, value

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, content: str) -> None:
        """Replace the file's content with ``content`` and release the lock."""
        if self._file is None:
            raise ValueError(f"Config '{self.path}' is already closed")
        data = content.encode("utf-8")
        try:
            self._file.seek(0)
            self._file.truncate(len(data))
            self._file.write(data)
            self._file.flush()
        finally:
            self.close()

    def close(self) -> None:
        """Release the lock and close the file. Safe to call twice."""
        if self._file is None:
            return
        handle, self._file = self._file, None
        try:
            portalocker.unlock(handle)
        finally:
            handle.close()

    def __enter__(self) -> LockedConfig:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()