import re
from dataclasses import dataclass

from .errors import ConfigError, ErrorCode
from .models import SearchRequest


@dataclass(frozen=True)
class ResolvedPattern:
    pattern: str
    case_insensitive: bool

    def compile(self) -> re.Pattern:
        flags = re.IGNORECASE if self.case_insensitive else 0
        try:
            return re.compile(self.pattern, flags)
        except re.error as e:
            raise ConfigError(f"invalid pattern {self.pattern!r}: {e}", ErrorCode.INVALID_PATTERN) from e


def prepare_regex_pattern(raw: str, fixed_strings: bool = False, word_regexp: bool = False) -> str:
    """
    -F escapes metacharacters, -w adds word boundaries around the result.
    The result is also handed to `git log -E`, so it must stay valid POSIX ERE.
    """
    pattern = raw
    if fixed_strings:
        pattern = re.escape(pattern)
    if word_regexp:
        pattern = rf"\b({pattern})\b"
    return pattern


def is_case_insensitive(raw: str, case_sensitive: bool = False, ignore_case: bool = False, smart_case: bool = False) -> bool:
    # --case-sensitive > --ignore-case > --smart-case > sensitive
    if case_sensitive:
        return False
    if ignore_case:
        return True
    if smart_case:
        return not any(ch.isupper() for ch in raw)
    return False


def resolve_pattern(request: SearchRequest) -> ResolvedPattern:
    return ResolvedPattern(
        pattern=prepare_regex_pattern(request.pattern, request.fixed_strings, request.word_regexp),
        case_insensitive=is_case_insensitive(
            request.pattern,
            case_sensitive=request.case_sensitive,
            ignore_case=request.ignore_case,
            smart_case=request.smart_case,
        ),
    )
