import sys
import re
import logging
import subprocess
import os
import json
from typing import List, Dict, Optional, Any, Mapping, Union
from pathlib import Path

from rich.console import Console
from rich.theme import Theme

from .errors import ReadError, WriteError, TemplateError

# Global console object
console: Optional[Console] = None
_quiet_mode: bool = False
_json_mode: bool = False

# {name} tokens in the manifest template
_TOKEN_RE = re.compile(r"\{(\w+)\}")

PatternLike = Union[str, re.Pattern, None]


def init_console(quiet: bool = False, json_mode: bool = False):
    """Initialize the global Rich console."""
    global console, _quiet_mode, _json_mode
    _quiet_mode = quiet
    _json_mode = json_mode

    if not quiet and not json_mode:
        custom_theme = Theme({
            "info": "cyan",
            "warning": "yellow",
            "error": "bold red",
            "success": "bold green"
        })
        console = Console(theme=custom_theme, stderr=True)
    else:
        console = None


def print_json(data: Any):
    """Print data as JSON to stdout."""
    print(json.dumps(data, indent=2, sort_keys=True))


def print_success(msg: str):
    """Print a success message."""
    if _quiet_mode or _json_mode:
        return
    if console:
        console.print(f"[success]✔ {msg}[/success]")
    else:
        print(f"✔ {msg}", file=sys.stderr)


def print_error(msg: str, hint: Optional[str] = None):
    """Print an error message."""
    # JSON mode callers print the error inside their own payload
    if _json_mode:
        return
    if _quiet_mode or not console:
        print(f"❌ {msg}", file=sys.stderr)
        if hint and not _quiet_mode:
            print(f"Hint: {hint}", file=sys.stderr)
        return
    console.print(f"[error]❌ {msg}[/error]")
    if hint:
        console.print(f"[yellow]Hint: {hint}[/yellow]")


def setup_logging(debug: bool = False):
    """Configures logging for the CLI."""
    level = logging.DEBUG if debug else logging.INFO

    if _quiet_mode or _json_mode:
        if not debug:
            level = logging.CRITICAL + 1  # Suppress all

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr
    )


def run_command(
    cmd: Union[str, List[str]],
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    check: bool = True
) -> subprocess.CompletedProcess:
    """Run a subprocess command and return the result.

    A string is run through the shell, a list is executed directly.
    """
    shell = isinstance(cmd, str)
    logging.debug(f"Running command: {cmd if shell else ' '.join(cmd)}")
    try:
        proc_env = os.environ.copy()
        if env:
            proc_env.update(env)

        return subprocess.run(
            cmd,
            cwd=cwd,
            env=proc_env,
            check=check,
            shell=shell,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        logging.debug(f"Command failed with output: {e.stdout}")
        logging.debug(f"Command failed with stderr: {e.stderr}")
        raise


def _compile(pattern: PatternLike) -> Optional[re.Pattern]:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


class Toolbox:
    """File and template primitives used by the manifest command.

    Kept as a class so tests and embedding tools can substitute their own
    implementation of any single primitive.
    """

    def exists(self, path: Union[str, Path]) -> bool:
        return Path(path).exists()

    def read(self, path: Union[str, Path]) -> str:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"Failed to read {path}: {e}") from e

    def write(self, path: Union[str, Path], text: str) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise WriteError(f"Failed to write {path}: {e}") from e
        logging.debug(f"Wrote {path}")

    def list_files(
        self,
        directory: Union[str, Path],
        include: PatternLike = None,
        exclude: PatternLike = None
    ) -> List[Path]:
        """
        Lists files under directory as absolute paths, ordered by their
        POSIX relative path. Patterns are searched against that relative path.
        """
        root = Path(directory).resolve()
        include_re = _compile(include)
        exclude_re = _compile(exclude)

        entries = []
        for p in root.rglob("*"):
            if not p.is_file():
                continue
            rel = p.relative_to(root).as_posix()
            if include_re and not include_re.search(rel):
                continue
            if exclude_re and exclude_re.search(rel):
                continue
            entries.append((rel, p))

        entries.sort(key=lambda e: e[0])
        return [p for _, p in entries]

    def render_template(self, template: str, values: Mapping[str, Any]) -> str:
        """Replaces each {name} token with values[name]."""
        def substitute(match):
            key = match.group(1)
            if key not in values:
                raise TemplateError(f"No value for template token '{{{key}}}'")
            return str(values[key])

        return _TOKEN_RE.sub(substitute, template)
