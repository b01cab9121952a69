"""Upload manifest resolution.

Turns the `files` entries of a descriptor into concrete uploads:

1. The literal directory part of the include pattern (text before the
   first "(") is the local path to search; missing paths are skipped
   with a warning.
2. Regular files under that path are enumerated recursively.
3. Files matching the exclude pattern are dropped.
4. Files matching the include pattern are kept, and its capture groups
   are substituted into the upload pattern ($1, $2, ...) to form the
   remote target path.
"""

import os
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from deploy.descriptor import FileEntry
from deploy.exceptions import InvalidFileError

_PLACEHOLDER = re.compile(r"\$(\d+)")


@dataclass(frozen=True)
class Upload:
    """A local file and the remote path it is uploaded to."""

    source: str
    target: str
    params: dict[str, Any] | None = None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidFileError(
            f"Invalid pattern in descriptor: {pattern}",
            details=str(e),
        ) from e


def path_for(include_pattern: str) -> str:
    """Return the literal path prefix of an include pattern.

    The prefix ends before the first "(". A pattern with no "(" (or one
    starting with "(") is used whole.
    """
    ix = include_pattern.find("(")
    return include_pattern if ix <= 0 else include_pattern[:ix]


def is_excluded(path: str, pattern: str) -> bool:
    """True iff pattern is non-empty and found in path."""
    if not pattern:
        return False
    return compile_pattern(pattern).search(path) is not None


def format_target(upload_pattern: str, captures: Iterable[str | None]) -> str:
    """Substitute $1, $2, ... in upload_pattern with capture groups.

    Placeholders beyond the available groups are left as they are;
    groups that did not participate in the match become empty strings.
    """
    groups = list(captures)

    def replace(match: re.Match[str]) -> str:
        ix = int(match.group(1))
        if 1 <= ix <= len(groups):
            return groups[ix - 1] or ""
        return match.group(0)

    return _PLACEHOLDER.sub(replace, upload_pattern)


def list_files(root: Path, path: str) -> list[str]:
    """Enumerate regular files under path, relative to root.

    Returned strings keep path as their prefix ("dist/" yields
    "dist/app.jar"), so patterns match the same text the user wrote.
    """
    base = root / path
    if base.is_file():
        return [path]

    found = []
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, base)
        for filename in sorted(filenames):
            rel = filename if rel_dir == "." else os.path.join(rel_dir, filename)
            if (Path(dirpath) / filename).is_file():
                found.append(os.path.join(path, rel))
    return found


def find_uploads(root: Path, path: str, entry: FileEntry) -> list[Upload]:
    """Match the files under path against one manifest entry."""
    include = compile_pattern(entry.include_pattern)
    uploads = []
    for file_path in list_files(root, path):
        if is_excluded(file_path, entry.exclude_pattern):
            continue
        match = include.search(file_path)
        if match is None:
            continue
        uploads.append(
            Upload(
                source=file_path,
                target=format_target(entry.upload_pattern, match.groups()),
                params=entry.matrix_params,
            )
        )
    return uploads


def resolve_uploads(
    entries: Iterable[FileEntry],
    root: Path,
    warn: Callable[[str], None] | None = None,
) -> list[Upload]:
    """Resolve every manifest entry into uploads, in entry order.

    Args:
        entries: Manifest entries from the descriptor
        root: Directory relative paths are resolved against
        warn: Called with a message for each entry whose path is missing

    Returns:
        Concatenated uploads of all entries
    """
    uploads: list[Upload] = []
    for entry in entries:
        path = path_for(entry.include_pattern)
        if not (root / path).exists():
            if warn:
                warn(f"Path: {path} does not exist.")
            continue
        uploads.extend(find_uploads(root, path, entry))
    return uploads
