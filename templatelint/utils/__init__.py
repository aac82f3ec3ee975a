"""
Utility functions for the template linter.
"""

import fnmatch
import glob
import os
from pathlib import Path
from typing import Iterator, List, Optional, Union

from templatelint.parsers.nodes import Position

# Extensions of template files picked up when walking directories
TEMPLATE_EXTENSIONS = (".hbs", ".handlebars")

# Directories never walked into
DEFAULT_IGNORED_DIRECTORIES = frozenset([
    "node_modules",
    "bower_components",
    ".git",
    ".svn",
    ".hg",
    "tmp",
    "dist",
])


def calculate_location_display(
    module_name: Optional[str],
    location: Optional[Union[Position, tuple]] = None,
) -> str:
    """
    Format a location for use inside rule messages.

    >>> calculate_location_display("layout.hbs", Position(2, 2))
    "('layout.hbs'@ L2:C2)"
    >>> calculate_location_display(None, Position(2, 0))
    '(L2:C0)'
    """
    display = ""
    if module_name:
        display += f"'{module_name}'@ "
    if location is not None:
        if isinstance(location, tuple):
            location = Position(*location)
        display += f"L{location.line}:C{location.column}"
    if display:
        display = f"({display})"
    return display


def normalize_path(path: str, cwd: Optional[str] = None) -> str:
    """Normalize a path, resolving relative paths against ``cwd``."""
    if not os.path.isabs(path):
        path = os.path.join(cwd or os.getcwd(), path)
    return os.path.normpath(path)


def _strip_current_dir(path: str) -> str:
    while path.startswith("./"):
        path = path[2:]
    return path


def module_matches(pattern: str, module_id: str, cwd: Optional[str] = None, allow_glob: bool = False) -> bool:
    """
    Check whether a configured module id refers to ``module_id``.

    Ids match when they are equal, when they are equal once both are
    resolved against ``cwd``, or when one is an absolute path ending with
    the other. With ``allow_glob`` the pattern may also be an ``fnmatch``
    glob, matched against the id as given and, for absolute ids, against
    the id relative to ``cwd``.
    """
    if pattern == module_id:
        return True
    if allow_glob:
        if fnmatch.fnmatchcase(module_id, pattern):
            return True
        if os.path.isabs(module_id) and not os.path.isabs(pattern):
            relative = os.path.relpath(normalize_path(module_id, cwd), cwd or os.getcwd())
            if fnmatch.fnmatchcase(Path(relative).as_posix(), _strip_current_dir(pattern)):
                return True
    if normalize_path(pattern, cwd) == normalize_path(module_id, cwd):
        return True

    pattern_posix = pattern.replace(os.sep, "/")
    module_posix = module_id.replace(os.sep, "/")
    if os.path.isabs(module_id) and not os.path.isabs(pattern):
        return module_posix.endswith("/" + _strip_current_dir(pattern_posix))
    if os.path.isabs(pattern) and not os.path.isabs(module_id):
        return pattern_posix.endswith("/" + _strip_current_dir(module_posix))
    return False


def module_id_for_path(file_path: str, cwd: Optional[str] = None) -> str:
    """
    Derive a module id from a template path.

    The id is the path relative to ``cwd`` without its extension, using
    ``/`` separators: ``app/templates/application.hbs`` becomes
    ``app/templates/application``.
    """
    cwd = cwd or os.getcwd()
    relative = os.path.relpath(os.path.abspath(file_path), cwd)
    stem, _ = os.path.splitext(relative)
    return Path(stem).as_posix()


def is_template_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in TEMPLATE_EXTENSIONS


def discover_templates(target: str) -> Iterator[str]:
    """
    Yield the template files under ``target``.

    A file is yielded as is, whatever its extension. Directories are walked
    for template extensions, skipping vendored and VCS directories.
    """
    path = Path(target)
    if path.is_file():
        yield str(path)
        return
    if not path.is_dir():
        return

    for root, dirs, files in os.walk(path):
        dirs[:] = sorted(d for d in dirs if d not in DEFAULT_IGNORED_DIRECTORIES)
        for file in sorted(files):
            if is_template_file(file):
                yield os.path.join(root, file)


def expand_paths(targets: List[str]) -> List[str]:
    """
    Expand files, directories and glob patterns into template paths.

    Paths that do not exist and globs without matches are skipped. Each
    file appears once, in first-seen order.
    """
    seen = set()
    results = []
    for target in targets:
        if any(char in target for char in "*?["):
            candidates = []
            for match in sorted(glob.glob(target, recursive=True)):
                if os.path.isdir(match) or is_template_file(match):
                    candidates.extend(discover_templates(match))
        else:
            candidates = list(discover_templates(target))

        for candidate in candidates:
            key = os.path.abspath(candidate)
            if key not in seen:
                seen.add(key)
                results.append(candidate)
    return results
