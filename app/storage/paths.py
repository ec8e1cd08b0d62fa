"""Explicit local/remote path references.

Stored path columns hold either a bare filename living in one of the local
asset directories, or a ``{category}/{filename}`` reference on a remote file
server. Records carry these as tagged values; the string form only exists at
the storage and wire boundaries.
"""

import posixpath
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class LocalPath:
    """A bare filename inside a local asset directory."""
    name: str

    def __str__(self) -> str:
        return self.name

    @property
    def is_remote(self) -> bool:
        return False


@dataclass(frozen=True)
class RemotePath:
    """A file stored under a category bucket on a remote file server."""
    category: str
    name: str

    def __str__(self) -> str:
        if not self.category:
            return self.name
        return f"{self.category}/{self.name}"

    @property
    def is_remote(self) -> bool:
        return True


StoredPath = Union[LocalPath, RemotePath]


def normalize_separators(value: str) -> str:
    return value.replace("\\", "/")


def parse_stored_path(value: Union[str, StoredPath, None]) -> Optional[StoredPath]:
    """Turn a stored string into a tagged path.

    Legacy rows were written without a tag, so the tag is recovered here and
    nowhere else: a value with a separator (either slash) is remote.
    """
    if value is None or isinstance(value, (LocalPath, RemotePath)):
        return value
    if not value:
        return None
    normalized = normalize_separators(value)
    if "/" not in normalized:
        return LocalPath(normalized)
    category, name = posixpath.split(normalized)
    return RemotePath(category.strip("/"), name)


def remote_path_from_server(file_path: str) -> RemotePath:
    """Build a remote reference from a file server's ``filePath`` response."""
    parsed = parse_stored_path(file_path)
    if isinstance(parsed, RemotePath):
        return parsed
    return RemotePath("", file_path)


def basename(value: Union[str, StoredPath]) -> str:
    if isinstance(value, (LocalPath, RemotePath)):
        return value.name
    return posixpath.basename(normalize_separators(value))
