import io
import re

from qae.core.models import BinaryMarker, BlockKind, LineMatch, LogMatch, OutputBlock
from qae.core.output import (
    BINARY_LINE,
    NAME_MATCH_LINE,
    combined_blocks,
    content_blocks,
    format_rg_line,
    git_log_blocks,
    highlight,
    name_blocks,
    print_blocks,
    print_rg_lines,
    render_blocks,
    sort_blocks,
)


def _repo_block(path, *lines):
    return OutputBlock(key=path, lines=[f"{path} (git log):", *lines], kind=BlockKind.REPO)


def test_name_blocks_are_single_lines():
    lines = render_blocks(name_blocks(["b.txt", "a.txt"]))
    assert lines == ["a.txt", "b.txt"]


def test_content_block_layout():
    blocks = content_blocks({"x.txt": [LineMatch(3, "hello"), LineMatch(9, "hello again")]})
    assert render_blocks(blocks) == ["x.txt", "  3:hello", "  9:hello again"]


def test_binary_marker_line():
    blocks = content_blocks({"blob.bin": [BinaryMarker()]})
    assert render_blocks(blocks) == ["blob.bin", BINARY_LINE]


def test_blank_line_only_around_multi_line_blocks():
    blocks = name_blocks(["a", "b"]) + content_blocks({"c": [LineMatch(1, "x")]}) + name_blocks(["d", "e"])
    assert render_blocks(blocks) == ["a", "b", "", "c", "  1:x", "", "d", "e"]


def test_combined_blocks_annotate_name_matches():
    blocks = combined_blocks(
        {"hello.txt", "hello.md"},
        {"hello.txt": [LineMatch(1, "hello")], "other.txt": [LineMatch(2, "hello")]},
    )
    assert render_blocks(blocks) == [
        "hello.md",
        "",
        "hello.txt",
        NAME_MATCH_LINE,
        "  1:hello",
        "",
        "other.txt",
        "  2:hello",
    ]


def test_combined_block_binary_name_match():
    blocks = combined_blocks({"hello.bin"}, {"hello.bin": [BinaryMarker()]})
    assert render_blocks(blocks) == ["hello.bin", NAME_MATCH_LINE, BINARY_LINE]


def test_git_log_blocks_group_by_repo():
    blocks = git_log_blocks([
        LogMatch("repo", "aaaaaaa", "first fix", "2024-01-01"),
        LogMatch("repo", "bbbbbbb", "second fix", "2024-01-02"),
        LogMatch("other", "ccccccc", "undated fix"),
    ])
    assert render_blocks(blocks) == [
        "other (git log):",
        "  ccccccc undated fix",
        "",
        "repo (git log):",
        "  aaaaaaa 2024-01-01 first fix",
        "  bbbbbbb 2024-01-02 second fix",
    ]


def test_repo_block_follows_its_files():
    blocks = [
        _repo_block("root/repo-a", "  1111111 2024-01-01 fix"),
        _repo_block("root/repo-z", "  2222222 2024-01-01 fix"),
        OutputBlock("root/repo-z/file.txt", ["root/repo-z/file.txt"]),
        OutputBlock("root/repo-a/file.txt", ["root/repo-a/file.txt"]),
        OutputBlock("root/repo-a/sub/deep.txt", ["root/repo-a/sub/deep.txt"]),
    ]
    assert [b.key for b in sort_blocks(blocks)] == [
        "root/repo-a/file.txt",
        "root/repo-a/sub/deep.txt",
        "root/repo-a",
        "root/repo-z/file.txt",
        "root/repo-z",
    ]


def test_repo_block_before_sibling_with_shared_prefix():
    blocks = [
        OutputBlock("root/repo-ab.txt", ["root/repo-ab.txt"]),
        _repo_block("root/repo", "  1111111 fix"),
        OutputBlock("root/repo/x.txt", ["root/repo/x.txt"]),
    ]
    # '-' sorts before '/', so the sibling file still comes first.
    assert [b.key for b in sort_blocks(blocks)] == ["root/repo-ab.txt", "root/repo/x.txt", "root/repo"]


def test_nested_repositories():
    blocks = [
        _repo_block("root", "  1 outer"),
        _repo_block("root/inner", "  2 inner"),
        OutputBlock("root/inner/f", ["root/inner/f"]),
        OutputBlock("root/z", ["root/z"]),
    ]
    assert [b.key for b in sort_blocks(blocks)] == ["root/inner/f", "root/inner", "root/z", "root"]


def test_repo_block_with_trailing_slash():
    blocks = [_repo_block("root/", "  1 outer"), OutputBlock("root/a", ["root/a"])]
    assert [b.key for b in sort_blocks(blocks)] == ["root/a", "root/"]


def test_sorting_is_bytewise():
    keys = ["b", "B", "a", "_", "é"]
    assert [b.key for b in sort_blocks(name_blocks(keys))] == ["B", "_", "a", "b", "é"]


def test_render_is_idempotent():
    blocks = combined_blocks({"n.txt"}, {"c.txt": [LineMatch(1, "x")]}) + git_log_blocks(
        [LogMatch(".", "1234567", "msg", "2024-01-01")]
    )
    assert render_blocks(blocks) == render_blocks(list(reversed(blocks)))


def test_print_blocks_writes_lines():
    stream = io.StringIO()
    print_blocks(content_blocks({"f": [LineMatch(1, "a")]}), stream)
    assert stream.getvalue() == "f\n  1:a\n"


def test_print_blocks_empty():
    stream = io.StringIO()
    print_blocks([], stream)
    assert stream.getvalue() == ""


def test_rg_line_format():
    regex = re.compile("bar")
    line = format_rg_line("/tmp/x/test.txt", 1, "foo bar baz", regex)
    assert line == (
        "\x1b[0m\x1b[35m/tmp/x/test.txt\x1b[0m:\x1b[0m\x1b[32m1\x1b[0m:"
        "foo \x1b[0m\x1b[1m\x1b[31mbar\x1b[0m baz"
    )


def test_highlight_every_match():
    out = highlight("ab ab ab", re.compile("ab"))
    assert out.count("\x1b[0m\x1b[1m\x1b[31m") == 3


def test_highlight_ignores_empty_matches():
    assert highlight("abc", re.compile("x*")) == "abc"


def test_rg_lines_binary_warning_goes_to_stderr():
    out, err = io.StringIO(), io.StringIO()
    print_rg_lines(
        {"b.txt": [LineMatch(2, "hello")], "a.bin": [BinaryMarker()]},
        re.compile("hello"),
        out,
        err,
    )
    assert out.getvalue().count("\n") == 1
    assert "b.txt" in out.getvalue()
    assert err.getvalue() == "WARNING: stopped searching binary file \x1b[0m\x1b[35ma.bin\x1b[0m after match\n"
