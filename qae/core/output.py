import re
from typing import Dict, Iterable, List, Set, TextIO, Tuple

from .models import BinaryMarker, BlockKind, ContentMatch, LineMatch, LogMatch, OutputBlock

NAME_MATCH_LINE = "  (name match)"
BINARY_LINE = "  (binary file matches)"

# rg --color=ansi escapes
RESET = "\x1b[0m"
MAGENTA = "\x1b[35m"
GREEN = "\x1b[32m"
BOLD_RED = "\x1b[1m\x1b[31m"

# Ranks above every byte value, so a repository block lands after everything under its path.
_SUBTREE_END = 256


def _path_bytes(path: str) -> bytes:
    return path.encode("utf-8", errors="surrogateescape")


def block_sort_key(block: OutputBlock) -> Tuple[int, ...]:
    """
    File blocks order byte-wise by path. A repository block orders as its
    path plus a separator plus a terminal marker: right after the last file
    inside the repository, before any later sibling.
    """
    key = _path_bytes(block.key)
    if block.kind is BlockKind.REPO:
        if not key.endswith(b"/"):
            key += b"/"
        return tuple(key) + (_SUBTREE_END,)
    return tuple(key)


def content_lines(matches: Iterable[ContentMatch]) -> List[str]:
    lines = []
    for m in matches:
        if isinstance(m, LineMatch):
            lines.append(f"  {m.line_number}:{m.text}")
        elif isinstance(m, BinaryMarker):
            lines.append(BINARY_LINE)
    return lines


def name_blocks(name_matches: Iterable[str]) -> List[OutputBlock]:
    return [OutputBlock(key=path, lines=[path]) for path in name_matches]


def content_blocks(content_matches: Dict[str, List[ContentMatch]]) -> List[OutputBlock]:
    return [OutputBlock(key=path, lines=[path] + content_lines(matches))
            for path, matches in content_matches.items()]


def combined_blocks(name_matches: Set[str], content_matches: Dict[str, List[ContentMatch]]) -> List[OutputBlock]:
    """A bare path is a name match; paths with content get annotated when they also matched by name."""
    blocks = []
    for path in set(name_matches) | set(content_matches):
        matches = content_matches.get(path)
        if matches is None:
            blocks.append(OutputBlock(key=path, lines=[path]))
            continue
        lines = [path]
        if path in name_matches:
            lines.append(NAME_MATCH_LINE)
        lines.extend(content_lines(matches))
        blocks.append(OutputBlock(key=path, lines=lines))
    return blocks


def format_log_match(m: LogMatch) -> str:
    if m.date is None:
        return f"  {m.hash} {m.message}"
    return f"  {m.hash} {m.date} {m.message}"


def git_log_blocks(log_matches: Iterable[LogMatch]) -> List[OutputBlock]:
    by_repo: Dict[str, List[LogMatch]] = {}
    for m in log_matches:
        by_repo.setdefault(m.repo, []).append(m)
    return [
        OutputBlock(key=repo, lines=[f"{repo} (git log):"] + [format_log_match(m) for m in matches], kind=BlockKind.REPO)
        for repo, matches in by_repo.items()
    ]


def sort_blocks(blocks: List[OutputBlock]) -> List[OutputBlock]:
    return sorted(blocks, key=block_sort_key)


def render_blocks(blocks: List[OutputBlock]) -> List[str]:
    out: List[str] = []
    prev_multi = False
    for i, block in enumerate(sort_blocks(blocks)):
        if i > 0 and (block.is_multi or prev_multi):
            out.append("")
        out.extend(block.lines)
        prev_multi = block.is_multi
    return out


def print_blocks(blocks: List[OutputBlock], stream: TextIO) -> None:
    """Sort and print; a blank line goes between two blocks when either spans several lines."""
    for line in render_blocks(blocks):
        stream.write(line + "\n")


def highlight(line: str, regex: re.Pattern) -> str:
    parts = []
    last = 0
    for m in regex.finditer(line):
        if m.start() == m.end():
            continue
        parts.append(line[last:m.start()])
        parts.append(f"{RESET}{BOLD_RED}{m.group(0)}{RESET}")
        last = m.end()
    parts.append(line[last:])
    return "".join(parts)


def format_rg_line(path: str, line_number: int, line: str, regex: re.Pattern) -> str:
    return f"{RESET}{MAGENTA}{path}{RESET}:{RESET}{GREEN}{line_number}{RESET}:{highlight(line, regex)}"


def format_binary_warning(path: str) -> str:
    return f"WARNING: stopped searching binary file {RESET}{MAGENTA}{path}{RESET} after match"


def print_rg_lines(content_matches: Dict[str, List[ContentMatch]], regex: re.Pattern,
                   out: TextIO, err: TextIO) -> None:
    """rg --color=ansi style: one line per match, binary files only warn on stderr."""
    for path in sorted(content_matches, key=_path_bytes):
        for m in content_matches[path]:
            if isinstance(m, LineMatch):
                out.write(format_rg_line(path, m.line_number, m.text, regex) + "\n")
            else:
                err.write(format_binary_warning(path) + "\n")
