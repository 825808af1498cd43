"""Read-only file collections that template sources are selected from."""

import fnmatch
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Dict, List, Mapping, Union


def match_pattern(pattern: str, name: str) -> bool:
    """Match a slash-separated file name against a glob pattern.

    ``*``, ``?`` and ``[...]`` never cross a ``/``; a ``**`` segment matches
    zero or more whole directories.
    """
    return _match_parts(
        PurePosixPath(pattern).parts, PurePosixPath(name).parts
    )


def _match_parts(pattern_parts, name_parts) -> bool:
    if not pattern_parts:
        return not name_parts

    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(
            _match_parts(rest, name_parts[i:]) for i in range(len(name_parts) + 1)
        )

    if not name_parts:
        return False
    return fnmatch.fnmatchcase(name_parts[0], head) and _match_parts(
        rest, name_parts[1:]
    )


class FileCollection(ABC):
    """Abstract read-only collection of text files addressed by posix names."""

    @abstractmethod
    def list_files(self) -> List[str]:
        """Return the names of all files in the collection."""
        pass

    @abstractmethod
    def read_text(self, name: str) -> str:
        """Return the content of a file.

        Raises:
            FileNotFoundError: If no file has this name
        """
        pass

    def exists(self, name: str) -> bool:
        return name in self.list_files()

    def glob(self, pattern: str) -> List[str]:
        """Return the sorted names of files matching ``pattern``."""
        return sorted(
            name for name in self.list_files() if match_pattern(pattern, name)
        )


class DirectoryFS(FileCollection):
    """File collection rooted at a directory on disk."""

    def __init__(self, root: Union[str, Path], encoding: str = "utf-8") -> None:
        self.root = Path(root)
        self.encoding = encoding

    def list_files(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return [
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file()
        ]

    def exists(self, name: str) -> bool:
        return self._resolve(name).is_file()

    def read_text(self, name: str) -> str:
        path = self._resolve(name)
        if not path.is_file():
            raise FileNotFoundError(f"File not found in {self.root}: {name}")
        return path.read_text(encoding=self.encoding)

    def _resolve(self, name: str) -> Path:
        relative = PurePosixPath(name)
        if relative.is_absolute() or ".." in relative.parts:
            raise FileNotFoundError(f"Invalid file name outside {self.root}: {name}")
        return self.root.joinpath(*relative.parts)

    def __repr__(self) -> str:
        return f"DirectoryFS({str(self.root)!r})"


class MemoryFS(FileCollection):
    """File collection held in memory, keyed by posix file name."""

    def __init__(self, files: Mapping[str, Union[str, bytes]]) -> None:
        self._files: Dict[str, str] = {
            PurePosixPath(name).as_posix(): (
                content.decode("utf-8") if isinstance(content, bytes) else content
            )
            for name, content in files.items()
        }

    def list_files(self) -> List[str]:
        return list(self._files)

    def exists(self, name: str) -> bool:
        return name in self._files

    def read_text(self, name: str) -> str:
        try:
            return self._files[name]
        except KeyError:
            raise FileNotFoundError(
                f"File not found in memory collection: {name}"
            ) from None

    def __repr__(self) -> str:
        return f"MemoryFS({len(self._files)} files)"
