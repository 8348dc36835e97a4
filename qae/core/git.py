"""
git integration: repository discovery and commit message search.
"""
import logging
import os
import subprocess
from typing import Callable, List, Optional, Sequence

from .diagnostics import Diagnostics
from .errors import MissingDependencyError
from .models import LogMatch, Repository
from .pattern import ResolvedPattern
from .settings import Settings, settings as global_settings

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
GIT_NOT_FOUND = "git not found, skipping log search"


class GitRunner:
    """
    Runs git synchronously. Failures come back as exit status and stderr;
    a missing binary is fatal only when `required` is set.
    """

    def __init__(self, diagnostics: Diagnostics, binary: str = "git", required: bool = False,
                 run: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        self.diagnostics = diagnostics
        self.binary = binary
        self.required = required
        self.missing = False
        self._run = run

    def run(self, args: Sequence[str], scope: str = "") -> Optional[subprocess.CompletedProcess]:
        if self.missing:
            return None
        cmd = [self.binary, *args]
        logger.debug("running %s", cmd)
        try:
            return self._run(cmd, capture_output=True, check=False)
        except FileNotFoundError:
            if self.required:
                raise MissingDependencyError("git is not installed")
            self.missing = True
            self.diagnostics.report_once("", GIT_NOT_FOUND)
            return None
        except OSError as e:
            self.diagnostics.report(scope, f"git: {e.strerror or e}")
            return None


def _decode(data) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data or ""


def _display_path(repo: str, root: str) -> str:
    """Express a repository in the same terms as the file paths under `root`."""
    real_repo = os.path.realpath(repo)
    real_root = os.path.realpath(root)
    if real_repo == real_root:
        stripped = root.rstrip("/" + os.sep)
        return stripped or root
    try:
        rel = os.path.relpath(real_repo, real_root)
    except ValueError:
        return repo
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return repo
    return os.path.join(root, rel)


def discover_git_repos(root: str, git: GitRunner) -> List[Repository]:
    """
    1. The working tree enclosing `root`, if any.
    2. Immediate children of `root` that carry a .git entry.
    Deduplicated by canonical path; discovery order is kept.
    """
    repos: List[Repository] = []
    seen = set()

    def _add(display: str, path: str) -> None:
        canonical = os.path.realpath(path)
        if canonical in seen:
            return
        seen.add(canonical)
        repos.append(Repository(path=display, canonical=canonical))

    out = git.run(["-C", root, "rev-parse", "--show-toplevel"], scope=root)
    if out is not None and out.returncode == 0:
        toplevel = _decode(out.stdout).strip()
        if toplevel and os.path.exists(toplevel):
            _add(_display_path(toplevel, root), toplevel)
    elif out is not None:
        logger.debug("%s is not inside a git working tree", root)

    try:
        with os.scandir(root) as it:
            children = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.debug("cannot list %s: %s", root, e)
        children = []
    for entry in children:
        child = os.path.join(root, entry.name)
        try:
            if entry.is_dir() and os.path.exists(os.path.join(child, ".git")):
                _add(child, child)
        except OSError:
            continue
    return repos


def log_command(repo: str, resolved: ResolvedPattern, date_format: Optional[str]) -> List[str]:
    fields = ["%h", "%ad", "%s"] if date_format else ["%h", "%s"]
    args = ["-C", repo, "log", "--format=" + "%x1f".join(fields)]
    if date_format:
        args.append(f"--date={date_format}")
    args.append("-E")
    if resolved.case_insensitive:
        args.append("-i")
    args.extend(["--grep", resolved.pattern])
    return args


def parse_log_output(repo: str, stdout: str, with_date: bool = True) -> List[LogMatch]:
    expected = 3 if with_date else 2
    matches = []
    for line in stdout.splitlines():
        parts = line.split(FIELD_SEP, expected - 1)
        if len(parts) != expected:
            logger.debug("skipping malformed git log line in %s: %r", repo, line)
            continue
        if with_date:
            h, date, message = parts
        else:
            (h, message), date = parts, None
        matches.append(LogMatch(repo=repo, hash=h, date=date, message=message))
    return matches


def search_git_log(root: str, resolved: ResolvedPattern, git: GitRunner,
                   settings: Optional[Settings] = None) -> List[LogMatch]:
    sett = settings or global_settings
    date_format = sett.LOG_DATE
    matches: List[LogMatch] = []
    for repo in discover_git_repos(root, git):
        out = git.run(log_command(repo.path, resolved, date_format), scope=repo.path)
        if out is None:
            if git.missing:
                break
            continue
        if out.returncode != 0:
            logger.debug("git log in %s exited %d: %s", repo.path, out.returncode, _decode(out.stderr).strip())
            continue
        matches.extend(parse_log_output(repo.path, _decode(out.stdout), with_date=date_format is not None))
    return matches
