"""
Built-in file type definitions used by -t/--type and --type-list.
Globs are matched against the bare file name.
"""
import fnmatch
import os
from typing import Dict, Iterable, List, Optional

from .errors import ConfigError, ErrorCode

DEFAULT_TYPES: Dict[str, List[str]] = {
    "asm": ["*.asm", "*.s", "*.S"],
    "avro": ["*.avdl", "*.avpr", "*.avsc"],
    "c": ["*.[chH]", "*.[chH].in", "*.cats"],
    "clojure": ["*.clj", "*.cljc", "*.cljs", "*.cljx"],
    "cmake": ["*.cmake", "CMakeLists.txt"],
    "config": ["*.cfg", "*.conf", "*.config", "*.ini"],
    "cpp": ["*.[ChH]", "*.cc", "*.[ch]pp", "*.[ch]xx", "*.hh", "*.inl", "*.[ChH].in", "*.cc.in", "*.[ch]pp.in", "*.[ch]xx.in", "*.hh.in"],
    "csharp": ["*.cs"],
    "css": ["*.css", "*.scss"],
    "csv": ["*.csv"],
    "dart": ["*.dart"],
    "docker": ["*Dockerfile*"],
    "elixir": ["*.ex", "*.eex", "*.exs", "*.heex", "*.leex", "*.livemd"],
    "elm": ["*.elm"],
    "erlang": ["*.erl", "*.hrl"],
    "fish": ["*.fish"],
    "fsharp": ["*.fs", "*.fsx", "*.fsi"],
    "go": ["*.go"],
    "gradle": ["*.gradle", "*.gradle.kts"],
    "graphql": ["*.graphql", "*.graphqls"],
    "groovy": ["*.groovy", "*.gradle"],
    "h": ["*.h", "*.hh", "*.hpp"],
    "haskell": ["*.hs", "*.lhs", "*.cpphs", "*.c2hs", "*.hsc"],
    "html": ["*.htm", "*.html", "*.ejs"],
    "java": ["*.java", "*.jsp", "*.jspx", "*.properties"],
    "js": ["*.js", "*.jsx", "*.vue", "*.cjs", "*.mjs"],
    "json": ["*.json", "composer.lock", "*.sarif"],
    "jsonl": ["*.jsonl"],
    "julia": ["*.jl"],
    "kotlin": ["*.kt", "*.kts"],
    "less": ["*.less"],
    "lisp": ["*.el", "*.jl", "*.lisp", "*.lsp", "*.sc", "*.scm"],
    "lua": ["*.lua"],
    "make": ["[Gg][Nn][Uu]makefile", "[Mm]akefile", "[Gg][Nn][Uu]makefile.am", "[Gg][Nn][Uu]makefile.in", "[Mm]akefile.am", "[Mm]akefile.in", "*.mk", "*.mak"],
    "markdown": ["*.markdown", "*.md", "*.mdown", "*.mdwn", "*.mkd", "*.mkdn", "*.mdx"],
    "md": ["*.markdown", "*.md", "*.mdown", "*.mdwn", "*.mkd", "*.mkdn", "*.mdx"],
    "nix": ["*.nix"],
    "objc": ["*.h", "*.m"],
    "ocaml": ["*.ml", "*.mli", "*.mll", "*.mly"],
    "perl": ["*.perl", "*.pl", "*.PL", "*.plh", "*.plx", "*.pm", "*.t"],
    "php": ["*.php", "*.php3", "*.php4", "*.php5", "*.php7", "*.php8", "*.pht", "*.phtml"],
    "protobuf": ["*.proto"],
    "ps": ["*.cdxml", "*.ps1", "*.ps1xml", "*.psd1", "*.psm1"],
    "py": ["*.py", "*.pyi"],
    "python": ["*.py", "*.pyi"],
    "r": ["*.R", "*.r", "*.Rmd", "*.Rnw"],
    "rst": ["*.rst"],
    "ruby": ["*.gemspec", ".irbrc", "Gemfile", "Rakefile", "*.rb", "*.rake", "config.ru"],
    "rust": ["*.rs"],
    "scala": ["*.scala", "*.sbt"],
    "sh": ["*.bash", "*.bashrc", ".bash_*", ".bashrc", ".profile", ".zshrc", "*.sh", "*.zsh"],
    "sql": ["*.sql", "*.psql"],
    "svelte": ["*.svelte"],
    "swift": ["*.swift"],
    "tex": ["*.tex", "*.ltx", "*.cls", "*.sty", "*.bib", "*.dtx", "*.ins"],
    "tf": ["*.tf", "*.tfvars", "*.tf.json"],
    "toml": ["*.toml", "Cargo.lock"],
    "ts": ["*.ts", "*.tsx", "*.cts", "*.mts"],
    "txt": ["*.txt"],
    "typescript": ["*.ts", "*.tsx", "*.cts", "*.mts"],
    "vim": ["*.vim", ".vimrc", ".gvimrc", "vimrc", "gvimrc"],
    "xml": ["*.xml", "*.xml.dist", "*.dtd", "*.xsl", "*.xslt", "*.xsd", "*.xjb", "*.rng", "*.sch", "*.xhtml"],
    "yaml": ["*.yaml", "*.yml"],
    "zig": ["*.zig"],
    "zsh": [".zshenv", "zshenv", ".zlogin", "zlogin", ".zlogout", "zlogout", ".zprofile", "zprofile", ".zshrc", "zshrc", "*.zsh"],
}


def definitions(registry: Optional[Dict[str, List[str]]] = None) -> List[tuple]:
    reg = DEFAULT_TYPES if registry is None else registry
    return [(name, list(reg[name])) for name in sorted(reg)]


def format_type_list(registry: Optional[Dict[str, List[str]]] = None) -> List[str]:
    return [f"{name}: {', '.join(globs)}" for name, globs in definitions(registry)]


class TypeMatcher:
    """Whitelists files whose name matches a selected type, ignores every other file."""

    def __init__(self, names: Iterable[str], registry: Optional[Dict[str, List[str]]] = None):
        reg = DEFAULT_TYPES if registry is None else registry
        self.names = list(names)
        self.globs: List[str] = []
        for name in self.names:
            if name not in reg:
                raise ConfigError(f"unrecognized file type: {name}", ErrorCode.UNKNOWN_TYPE)
            self.globs.extend(g for g in reg[name] if g not in self.globs)

    def matched(self, path: str, is_dir: bool) -> Optional[bool]:
        """True -> ignore, False -> whitelist, None -> no opinion (directories)."""
        if is_dir:
            return None
        fn = os.path.basename(path)
        if any(fnmatch.fnmatchcase(fn, g) for g in self.globs):
            return False
        return True
