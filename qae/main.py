import argparse
import logging
import sys
from typing import List, Optional, TextIO

import shtab

from qae import __version__
from qae.core.diagnostics import Diagnostics
from qae.core.errors import ConfigError, QaeError
from qae.core.file_types import format_type_list
from qae.core.git import GitRunner, search_git_log
from qae.core.models import OutputBlock, SearchMode, SearchRequest
from qae.core.output import (
    combined_blocks,
    content_blocks,
    git_log_blocks,
    name_blocks,
    print_blocks,
    print_rg_lines,
)
from qae.core.pattern import resolve_pattern
from qae.core.scanner import build_scope
from qae.core.search import search_content, search_names
from qae.core.settings import Settings, settings as global_settings

PROG = "qae"

IGNORE_HELP = """\
Ignore files:
  qae respects .ignore files (same syntax as .gitignore) for excluding
  files and directories from search results. Place a .ignore file in any
  directory; patterns apply to that directory and its children. This is
  independent of git, so it also works in directories that are not
  repositories.

  Precedence (highest to lowest):
    1. Command-line flags (-x, -g, --no-ignore)
    2. .ignore
    3. .gitignore
    4. .git/info/exclude
    5. Global gitignore
"""


class _ParserExit(Exception):
    def __init__(self, status: int):
        super().__init__(status)
        self.status = status


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with exit status 1 and never calls sys.exit itself."""

    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise _ParserExit(status)

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Quick search combining ripgrep and fd: file contents, file names and git history.",
        epilog=IGNORE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("pattern", nargs="?", metavar="PATTERN", help="Search pattern (regex)")
    path_arg = parser.add_argument("path", nargs="?", default=".", metavar="PATH",
                                   help="Directory to search (defaults to current directory)")
    path_arg.complete = shtab.DIRECTORY

    mode = parser.add_argument_group("mode")
    mode.add_argument("-n", "--names-only", action="store_true", help="Only search file names")
    mode.add_argument("-c", "--content-only", action="store_true", help="Only search file contents")
    mode.add_argument("-l", "--log", action="store_true", help="Include git log matches")
    mode.add_argument("--log-only", action="store_true", help="Only search git logs")
    mode.add_argument("--type-list", action="store_true", help="Show all supported file types and exit")

    matching = parser.add_argument_group("matching")
    matching.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive search")
    matching.add_argument("-S", "--smart-case", action="store_true",
                          help="Case-insensitive unless the pattern contains an uppercase letter")
    matching.add_argument("-s", "--case-sensitive", action="store_true",
                          help="Case-sensitive search (overrides -i and -S)")
    matching.add_argument("-F", "--fixed-strings", action="store_true",
                          help="Treat pattern as a literal string, not a regex")
    matching.add_argument("-w", "--word-regexp", action="store_true", help="Only match whole words")

    walk = parser.add_argument_group("files")
    walk.add_argument("--hidden", action="store_true", help="Include hidden files")
    walk.add_argument("--no-ignore", action="store_true", help="Don't respect .ignore or .gitignore files")
    walk.add_argument("--no-ignore-vcs", action="store_true",
                      help="Don't respect .gitignore files (.ignore files still apply)")
    walk.add_argument("-t", "--type", dest="file_types", action="append", default=[], metavar="TYPE",
                      help="Filter by file type (e.g., rust, python); repeatable")
    walk.add_argument("-g", "--glob", dest="globs", action="append", default=[], metavar="GLOB",
                      help="Filter files by glob pattern (e.g., -g '*.rs'); repeatable")
    walk.add_argument("-x", "--ignore", dest="excludes", action="append", default=[], metavar="GLOB",
                      help="Exclude files matching glob pattern; repeatable")

    out = parser.add_argument_group("output")
    out.add_argument("--color", choices=["never", "auto", "always", "ansi"],
                     help="'ansi' prints rg-compatible colored match lines")
    out.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")
    out.add_argument("--version", action="version", version=f"{PROG} {__version__}")
    shtab.add_argument_to(parser, ["--completions"], help="Print a shell completion script and exit")

    # Accepted for ripgrep front ends; they do not change the output.
    for flag in ("--line-number", "--no-heading", "--no-column", "--with-filename", "--no-config"):
        parser.add_argument(flag, action="store_true", help=argparse.SUPPRESS)
    for flag in ("-A", "-B", "-C"):
        parser.add_argument(flag, type=int, metavar="NUM", help=argparse.SUPPRESS)
    return parser


def build_request(ns: argparse.Namespace) -> SearchRequest:
    """Validate flag combinations and freeze them into a SearchRequest."""
    if ns.log_only and ns.names_only:
        raise ConfigError("--log-only and --names-only are mutually exclusive")
    if ns.log_only and ns.content_only:
        raise ConfigError("--log-only and --content-only are mutually exclusive")
    if ns.log_only and ns.globs:
        raise ConfigError("--log-only and --glob are mutually exclusive")
    if ns.log_only and ns.excludes:
        raise ConfigError("--log-only and --ignore are mutually exclusive")
    if ns.names_only and ns.content_only:
        raise ConfigError("--names-only and --content-only are mutually exclusive")
    if ns.pattern is None:
        raise ConfigError("a search pattern is required")

    if ns.log_only:
        mode = SearchMode.LOG
    elif ns.names_only:
        mode = SearchMode.NAMES
    elif ns.content_only:
        mode = SearchMode.CONTENT
    else:
        mode = SearchMode.BOTH

    return SearchRequest(
        pattern=ns.pattern,
        path=ns.path,
        mode=mode,
        case_sensitive=ns.case_sensitive,
        ignore_case=ns.ignore_case,
        smart_case=ns.smart_case,
        fixed_strings=ns.fixed_strings,
        word_regexp=ns.word_regexp,
        hidden=ns.hidden,
        no_ignore=ns.no_ignore,
        no_ignore_vcs=ns.no_ignore_vcs,
        globs=list(ns.globs),
        excludes=list(ns.excludes),
        file_types=list(ns.file_types),
        log=ns.log,
        color=ns.color,
    )


def collect_blocks(request: SearchRequest, diagnostics: Diagnostics,
                   settings: Optional[Settings] = None) -> List[OutputBlock]:
    sett = settings or global_settings
    resolved = resolve_pattern(request)
    resolved.compile()

    blocks: List[OutputBlock] = []
    if request.mode is not SearchMode.LOG:
        scope = build_scope(request, sett)
        if request.mode is SearchMode.NAMES:
            blocks = name_blocks(search_names(scope, resolved, diagnostics))
        elif request.mode is SearchMode.CONTENT:
            blocks = content_blocks(search_content(scope, resolved, diagnostics))
        else:
            names = search_names(scope, resolved, diagnostics)
            content = search_content(scope, resolved, diagnostics)
            blocks = combined_blocks(names, content)

    if request.wants_log:
        git = GitRunner(diagnostics, binary=sett.GIT_BIN, required=request.mode is SearchMode.LOG)
        blocks.extend(git_log_blocks(search_git_log(request.path, resolved, git, sett)))
    return blocks


def run(request: SearchRequest, out: TextIO, err: TextIO, settings: Optional[Settings] = None) -> None:
    sett = settings or global_settings
    diagnostics = Diagnostics(PROG)
    ansi = request.color == "ansi"
    try:
        if ansi:
            resolved = resolve_pattern(request)
            regex = resolved.compile()
            content = search_content(build_scope(request, sett), resolved, diagnostics)
        else:
            blocks = collect_blocks(request, diagnostics, sett)
    finally:
        diagnostics.render(err)
    if ansi:
        print_rg_lines(content, regex, out, err)
    else:
        print_blocks(blocks, out)


def _configure_logging(verbose: bool, sett: Settings) -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(sett.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    try:
        ns = parser.parse_args(argv)
    except _ParserExit as e:
        return e.status

    _configure_logging(ns.verbose, global_settings)
    if ns.verbose:
        print(ns, file=sys.stderr)

    if ns.type_list:
        for line in format_type_list():
            print(line)
        return 0

    try:
        request = build_request(ns)
        run(request, sys.stdout, sys.stderr)
    except QaeError as e:
        print(f"{PROG}: {e.message}", file=sys.stderr)
        return 1
    return 0
