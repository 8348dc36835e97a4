"""
Layered ignore rules for the scanner.

Every matcher answers the same question for a path: True (ignore it),
False (whitelist it) or None (no opinion). Pattern syntax is gitignore's,
implemented by pathspec.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pathspec
from pathspec.pattern import Pattern

from .errors import ConfigError, ErrorCode

logger = logging.getLogger(__name__)

DOT_IGNORE = ".ignore"
GITIGNORE = ".gitignore"
GIT_DIR = ".git"


def _compile(line: str) -> List[Pattern]:
    spec = pathspec.PathSpec.from_lines("gitignore", [line])
    return [p for p in spec.patterns if p.include is not None]


def _rel_posix(path: str, base: str) -> str:
    rel = os.path.relpath(os.path.abspath(path), base)
    return rel.replace(os.sep, "/")


def _last_match(patterns: Sequence[Pattern], rel: str) -> Optional[bool]:
    # Later lines override earlier ones, as in .gitignore.
    result = None
    for pat in patterns:
        if pat.match_file(rel) is not None:
            result = pat.include
    return result


class IgnoreFile:
    """Patterns of one ignore file, anchored at the directory that holds it."""

    def __init__(self, base: str, patterns: List[Pattern], source: str = ""):
        self.base = os.path.abspath(base)
        self.patterns = patterns
        self.source = source

    @classmethod
    def from_lines(cls, base: str, lines: Sequence[str], source: str = "") -> Tuple["IgnoreFile", List[str]]:
        patterns: List[Pattern] = []
        errors: List[str] = []
        for lineno, line in enumerate(lines, 1):
            try:
                patterns.extend(_compile(line.rstrip("\r\n")))
            except ValueError as e:
                errors.append(f"line {lineno}: {e}")
        return cls(base, patterns, source), errors

    @classmethod
    def load(cls, path: Path, base: str) -> Tuple[Optional["IgnoreFile"], List[str]]:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None, []
        except OSError as e:
            return None, [e.strerror or str(e)]
        ig, errors = cls.from_lines(base, text.splitlines(), source=str(path))
        logger.debug("loaded %d ignore patterns from %s", len(ig.patterns), path)
        return (ig if ig.patterns else None), errors

    def matched(self, path: str, is_dir: bool) -> Optional[bool]:
        rel = _rel_posix(path, self.base)
        if rel == ".." or rel.startswith("../"):
            return None
        if is_dir:
            rel += "/"
        return _last_match(self.patterns, rel)


class OverrideMatcher:
    """
    Command line globs. A plain glob whitelists, a negated one ("!glob") ignores;
    when at least one plain glob exists, files matching none of them are ignored.
    """

    def __init__(self, root: str, globs: Sequence[str] = (), excludes: Sequence[str] = ()):
        self.root = os.path.abspath(root)
        self.patterns: List[Pattern] = []
        self.has_includes = False
        for glob in list(globs) + [f"!{x}" for x in excludes]:
            try:
                compiled = _compile(glob)
            except ValueError as e:
                raise ConfigError(f"invalid glob {glob!r}: {e}", ErrorCode.INVALID_GLOB) from e
            self.has_includes = self.has_includes or any(p.include for p in compiled)
            self.patterns.extend(compiled)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def matched(self, path: str, is_dir: bool) -> Optional[bool]:
        rel = _rel_posix(path, self.root)
        if is_dir:
            rel += "/"
        m = _last_match(self.patterns, rel)
        if m is not None:
            return not m
        if not is_dir and self.has_includes:
            return True
        return None


@dataclass
class IgnoreFrame:
    """Ignore files found in one directory."""
    directory: str
    dot_ignore: Optional[IgnoreFile] = None
    gitignore: Optional[IgnoreFile] = None
    git_exclude: Optional[IgnoreFile] = None
    has_git: bool = False
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def load(cls, directory: str, dot_ignore: bool, vcs_ignore: bool) -> "IgnoreFrame":
        d = Path(directory)
        frame = cls(directory=os.path.abspath(directory))
        frame.has_git = (d / GIT_DIR).exists()
        if dot_ignore:
            frame.dot_ignore = frame._load(d / DOT_IGNORE)
        if vcs_ignore:
            frame.gitignore = frame._load(d / GITIGNORE)
            if frame.has_git and (d / GIT_DIR).is_dir():
                frame.git_exclude = frame._load(d / GIT_DIR / "info" / "exclude")
        return frame

    def _load(self, path: Path) -> Optional[IgnoreFile]:
        ig, errors = IgnoreFile.load(path, self.directory)
        for msg in errors:
            self.errors.append((str(path), msg))
        return ig


def match_frames(frames: Sequence[IgnoreFrame], path: str, is_dir: bool,
                 global_ignore: Optional[IgnoreFile] = None) -> Optional[bool]:
    """
    Nearest directory wins within each kind; across kinds the order is
    .ignore, .gitignore, .git/info/exclude, global git ignore.
    Git rules only count inside a working tree and stop at its top level.
    """
    any_git = any(f.has_git for f in frames)
    m_ignore = m_gi = m_exclude = None
    saw_git = False
    for frame in reversed(frames):
        if m_ignore is None and frame.dot_ignore is not None:
            m_ignore = frame.dot_ignore.matched(path, is_dir)
        if any_git and not saw_git:
            if m_gi is None and frame.gitignore is not None:
                m_gi = frame.gitignore.matched(path, is_dir)
            if m_exclude is None and frame.git_exclude is not None:
                m_exclude = frame.git_exclude.matched(path, is_dir)
        saw_git = saw_git or frame.has_git
    m_global = None
    if any_git and global_ignore is not None:
        m_global = global_ignore.matched(path, is_dir)
    for m in (m_ignore, m_gi, m_exclude, m_global):
        if m is not None:
            return m
    return None
