import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

GIT_ENV = {
    "GIT_AUTHOR_NAME": "test",
    "GIT_AUTHOR_EMAIL": "test@test",
    "GIT_COMMITTER_NAME": "test",
    "GIT_COMMITTER_EMAIL": "test@test",
    "GIT_CONFIG_NOSYSTEM": "1",
}


@pytest.fixture(autouse=True)
def _qae_test_isolation(monkeypatch, tmp_path_factory, request):
    """
    Hard isolation so tests never read the user's git config, global ignore
    file or QAE_* settings. Unit tests may not spawn processes or exit.
    """
    for key in list(os.environ):
        if key.startswith("QAE_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for key, value in GIT_ENV.items():
        monkeypatch.setenv(key, value)

    node_path = str(getattr(request.node, "fspath", "") or "")
    is_integration = "/tests/integration/" in node_path

    allow_subprocess = request.node.get_closest_marker("allow_subprocess") is not None or is_integration
    if not allow_subprocess:
        def _blocked_popen(*_args, **_kwargs):
            raise RuntimeError("Test isolation: subprocess.Popen blocked (inject a fake runner).")

        monkeypatch.setattr(subprocess, "Popen", _blocked_popen)

    if not is_integration:
        def _blocked_exit(code=0):
            raise RuntimeError(f"Test isolation: sys.exit blocked (code={code}).")

        monkeypatch.setattr(sys, "exit", _blocked_exit)


def pytest_collection_modifyitems(config, items):
    for item in items:
        path = str(getattr(item, "fspath", "") or "")
        if "/tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)


@pytest.fixture
def fixture_tree(tmp_path, monkeypatch):
    """
    A small tree to search, returned as the relative path "fixtures" with the
    working directory moved next to it (name matching sees the whole path):
      hello.txt        "Hello, world!" / "Goodbye, world!"
      greeting.rs      println!("hello")
      data.csv
      subdir/nested.txt
      .hidden_file     contains "secret"
    """
    root = tmp_path / "fixtures"
    root.mkdir()
    (root / "hello.txt").write_text("Hello, world!\nGoodbye, world!\n", encoding="utf-8")
    (root / "greeting.rs").write_text('fn main() {\n    println!("hello");\n}\n', encoding="utf-8")
    (root / "data.csv").write_text("id,name\n1,alpha\n2,beta\n", encoding="utf-8")
    (root / "subdir").mkdir()
    (root / "subdir" / "nested.txt").write_text("deep inside\n", encoding="utf-8")
    (root / ".hidden_file").write_text("a secret lives here\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return Path("fixtures")


def _git(repo: Path, *args: str) -> None:
    out = subprocess.run(["git", *args], cwd=str(repo), capture_output=True, text=True)
    assert out.returncode == 0, f"git {args} failed: {out.stderr}"


@pytest.fixture
def make_git_repo():
    """Factory: create parent/name as a git repo with one commit of file.txt."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    def _make(parent: Path, name: str, msg: str, file_content: str) -> Path:
        repo = parent / name
        repo.mkdir(parents=True, exist_ok=True)
        _git(repo, "init", "-q")
        (repo / "file.txt").write_text(file_content, encoding="utf-8")
        _git(repo, "add", "file.txt")
        _git(repo, "commit", "-q", "-m", msg)
        return repo

    return _make


@pytest.fixture
def git_cmd():
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return _git
