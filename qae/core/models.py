from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class SearchMode(str, Enum):
    NAMES = "names"
    CONTENT = "content"
    BOTH = "both"
    LOG = "log"


@dataclass(frozen=True)
class SearchRequest:
    """Everything one run needs, derived once from the command line."""
    pattern: str
    path: str = "."
    mode: SearchMode = SearchMode.BOTH
    # Case policy (resolved by precedence in core.pattern)
    case_sensitive: bool = False
    ignore_case: bool = False
    smart_case: bool = False
    fixed_strings: bool = False
    word_regexp: bool = False
    # Traversal
    hidden: bool = False
    no_ignore: bool = False
    no_ignore_vcs: bool = False
    globs: List[str] = field(default_factory=list)  # e.g. ["*.rs"]
    excludes: List[str] = field(default_factory=list)  # e.g. ["*.lock", "build"]
    file_types: List[str] = field(default_factory=list)  # e.g. ["rust", "py"]
    # Output
    log: bool = False
    color: Optional[str] = None

    @property
    def wants_log(self) -> bool:
        return self.log or self.mode is SearchMode.LOG


@dataclass(frozen=True)
class LineMatch:
    line_number: int
    text: str


@dataclass(frozen=True)
class BinaryMarker:
    """Stands in for the matched lines of a file that turned out to be binary."""


ContentMatch = Union[LineMatch, BinaryMarker]


@dataclass(frozen=True)
class LogMatch:
    repo: str
    hash: str
    message: str
    date: Optional[str] = None


@dataclass(frozen=True)
class Repository:
    path: str  # as displayed
    canonical: str  # realpath, used for deduplication


class BlockKind(str, Enum):
    FILE = "file"
    REPO = "repo"


@dataclass
class OutputBlock:
    key: str
    lines: List[str]
    kind: BlockKind = BlockKind.FILE

    @property
    def is_multi(self) -> bool:
        return len(self.lines) > 1


@dataclass(frozen=True)
class WalkEntry:
    path: str
    is_dir: bool = False


@dataclass(frozen=True)
class WalkError:
    path: str
    message: str
