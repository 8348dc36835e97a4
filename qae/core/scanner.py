import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from .file_types import TypeMatcher
from .ignore import GIT_DIR, IgnoreFile, IgnoreFrame, OverrideMatcher, match_frames
from .models import SearchRequest, WalkEntry, WalkError
from .settings import Settings, settings as global_settings

logger = logging.getLogger(__name__)


@dataclass
class ScanScope:
    """What the scanner visits and what it leaves out."""
    root: str
    hidden: bool = False
    dot_ignore: bool = True
    vcs_ignore: bool = True
    overrides: Optional[OverrideMatcher] = None
    types: Optional[TypeMatcher] = None
    max_depth: Optional[int] = None
    follow_symlinks: bool = False
    global_ignore: Optional[IgnoreFile] = None
    errors: List[WalkError] = field(default_factory=list)


def build_scope(request: SearchRequest, settings: Optional[Settings] = None) -> ScanScope:
    """
    Derive the traversal policy from the request.
    Invalid globs and unknown types raise ConfigError before anything is walked.
    """
    sett = settings or global_settings
    overrides = None
    if request.globs or request.excludes:
        # Excludes are layered after the includes, so they win for the same path.
        overrides = OverrideMatcher(request.path, request.globs, request.excludes)
    types = TypeMatcher(request.file_types) if request.file_types else None

    vcs_ignore = not (request.no_ignore or request.no_ignore_vcs)
    scope = ScanScope(
        root=request.path,
        hidden=request.hidden,
        dot_ignore=not request.no_ignore,
        vcs_ignore=vcs_ignore,
        overrides=overrides,
        types=types,
        max_depth=sett.MAX_DEPTH,
        follow_symlinks=sett.FOLLOW_SYMLINKS,
    )
    if vcs_ignore:
        gpath = sett.GLOBAL_GITIGNORE
        ig, errors = IgnoreFile.load(gpath, os.path.abspath(request.path))
        scope.global_ignore = ig
        scope.errors.extend(WalkError(str(gpath), msg) for msg in errors)
    logger.debug(
        "scope root=%s hidden=%s dot_ignore=%s vcs_ignore=%s globs=%s excludes=%s types=%s",
        scope.root, scope.hidden, scope.dot_ignore, scope.vcs_ignore,
        request.globs, request.excludes, request.file_types,
    )
    return scope


class Scanner:
    def __init__(self, scope: ScanScope):
        self.scope = scope

    def iter_entries(self) -> Iterable[Union[WalkEntry, WalkError]]:
        """Yield every visited path (directories included) and every per-entry error."""
        root = self.scope.root
        yield from self.scope.errors
        if not os.path.exists(root) and not os.path.islink(root):
            yield WalkError(root, "No such file or directory")
            return
        if not os.path.isdir(root):
            yield WalkEntry(root, is_dir=False)
            return

        frames = self._parent_frames(root)
        yield from self._scan_recursive(root, frames, depth=0, visited=set())

    def _parent_frames(self, root: str) -> List[IgnoreFrame]:
        # Ignore files above the root still apply to it.
        frames = []
        current = Path(os.path.abspath(root)).parent
        for parent in [current, *current.parents][::-1]:
            frames.append(IgnoreFrame.load(str(parent), self.scope.dot_ignore, self.scope.vcs_ignore))
        return frames

    def is_ignored(self, path: str, name: str, is_dir: bool, frames: List[IgnoreFrame]) -> bool:
        scope = self.scope
        if scope.overrides:
            m = scope.overrides.matched(path, is_dir)
            if m is not None:
                return m

        m = match_frames(frames, path, is_dir, scope.global_ignore)
        if m is True:
            return True
        whitelisted = m is False

        if scope.types is not None:
            m = scope.types.matched(path, is_dir)
            if m is True:
                return True
            whitelisted = whitelisted or m is False

        if not whitelisted and not scope.hidden and name.startswith("."):
            return True
        return False

    def _scan_recursive(self, current_dir: str, parents: List[IgnoreFrame], depth: int,
                        visited: Set[str]) -> Iterable[Union[WalkEntry, WalkError]]:
        if self.scope.follow_symlinks:
            real_path = os.path.realpath(current_dir)
            if real_path in visited:
                return
            visited.add(real_path)

        frame = IgnoreFrame.load(current_dir, self.scope.dot_ignore, self.scope.vcs_ignore)
        for src, msg in frame.errors:
            yield WalkError(src, msg)
        frames = parents + [frame]

        try:
            with os.scandir(current_dir) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            yield WalkError(current_dir, e.strerror or str(e))
            return

        for entry in entries:
            path = os.path.join(current_dir, entry.name)
            try:
                is_link = entry.is_symlink()
                real_dir = entry.is_dir(follow_symlinks=True)
                walk_into = real_dir and (not is_link or self.scope.follow_symlinks)
            except OSError as e:
                yield WalkError(path, e.strerror or str(e))
                continue

            if walk_into and entry.name == GIT_DIR:
                continue
            if self.is_ignored(path, entry.name, walk_into, frames):
                continue

            yield WalkEntry(path, is_dir=real_dir)
            if walk_into:
                if self.scope.max_depth is not None and depth + 1 > self.scope.max_depth:
                    continue
                yield from self._scan_recursive(path, frames, depth + 1, visited)
