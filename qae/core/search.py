import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from .diagnostics import Diagnostics
from .models import BinaryMarker, ContentMatch, LineMatch, WalkError
from .pattern import ResolvedPattern
from .scanner import ScanScope, Scanner

logger = logging.getLogger(__name__)

_NUL = b"\x00"


def _iter_files(scope: ScanScope, diagnostics: Diagnostics):
    for entry in Scanner(scope).iter_entries():
        if isinstance(entry, WalkError):
            diagnostics.report(entry.path, entry.message)
            continue
        if entry.is_dir:
            continue
        yield entry.path


def search_names(scope: ScanScope, resolved: ResolvedPattern, diagnostics: Diagnostics) -> Set[str]:
    """Paths (root prefix included) whose full path matches the pattern."""
    regex = resolved.compile()
    matches: Set[str] = set()
    for path in _iter_files(scope, diagnostics):
        if regex.search(path):
            matches.add(path)
    return matches


def _decode_line(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\n").rstrip("\r")


def search_file(path: str, regex: re.Pattern) -> Tuple[List[LineMatch], bool]:
    """
    Match a single file line by line.
    Returns the matching lines and whether a NUL byte was seen. Text before the
    first NUL is still searched; nothing after it is read.
    """
    matches: List[LineMatch] = []
    saw_binary = False
    with open(path, "rb") as f:
        for lineno, raw in enumerate(f, 1):
            nul = raw.find(_NUL)
            if nul != -1:
                raw = raw[:nul]
                saw_binary = True
            text = _decode_line(raw)
            if regex.search(text):
                matches.append(LineMatch(lineno, text))
            if saw_binary:
                break
    return matches, saw_binary


def classify(matches: List[LineMatch], saw_binary: bool) -> Optional[List[ContentMatch]]:
    if saw_binary:
        # Binary files only show up when something matched before the binary data.
        return [BinaryMarker()] if matches else None
    return list(matches) if matches else None


def search_content(scope: ScanScope, resolved: ResolvedPattern,
                   diagnostics: Diagnostics) -> Dict[str, List[ContentMatch]]:
    regex = resolved.compile()
    results: Dict[str, List[ContentMatch]] = {}
    for path in _iter_files(scope, diagnostics):
        try:
            matches, saw_binary = search_file(path, regex)
        except OSError as e:
            diagnostics.report(path, e.strerror or str(e))
            continue
        entry = classify(matches, saw_binary)
        if entry is not None:
            results[path] = entry
        elif saw_binary:
            logger.debug("skipping binary file without matches: %s", path)
    return results
