import asyncio
import subprocess
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .config import AppcacheConfig, ConfigError, normalize_options
from .digest import generate_digest
from .errors import ValidationError
from .htmlpatch import MANIFEST_NAME, has_root_tag, patch_html
from .manifest import assemble_manifest, build_file_list, manifest_path
from .util import Toolbox, run_command, logging

# Never listed in the manifest nor hashed into the stamp
EXCLUDE_PATTERN = r"\.htaccess|^manifest\.appcache$"


class RunState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    READING = "reading"
    PATCHING = "patching"
    DIGESTING = "digesting"
    ASSEMBLING = "assembling"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class AppcacheRun:
    """One pass over the target directory: patch the HTML, then write the manifest."""

    def __init__(self, config: AppcacheConfig, toolbox: Optional[Toolbox] = None):
        self.config = config
        self.toolbox = toolbox or Toolbox()
        self.state = RunState.IDLE

    def _enter(self, state: RunState):
        logging.debug(f"appcache run: {self.state.value} -> {state.value}")
        self.state = state

    async def execute(self) -> Dict[str, Any]:
        try:
            return await self._execute()
        except Exception:
            self._enter(RunState.FAILED)
            raise

    async def _execute(self) -> Dict[str, Any]:
        config = self.config
        v = self.toolbox
        target = Path(config.dir)
        html_file = config.html_file

        # --- 1. Validate ---
        self._enter(RunState.VALIDATING)
        if not v.exists(target):
            raise ValidationError(f"{config.dir} does not exist")

        # --- 2. Read ---
        self._enter(RunState.READING)
        template = v.read(config.manifest_template)
        html = v.read(html_file)

        # --- 3. Patch ---
        self._enter(RunState.PATCHING)
        files = v.list_files(target, None, EXCLUDE_PATTERN)
        if not files:
            raise ValidationError(f"{config.dir} has no files to cache")
        app_files = build_file_list(files, target, config.extras)

        if not has_root_tag(html):
            logging.warning(f"No <html> tag found in {html_file}, writing it unchanged.")
        # Written before hashing so the stamp covers the patched document.
        # Not rolled back if hashing fails later.
        v.write(html_file, patch_html(html))
        logging.info(f"Added manifest attribute to {html_file}")

        # --- 4. Digest ---
        self._enter(RunState.DIGESTING)
        stamp = await generate_digest(files)

        # --- 5. Assemble ---
        self._enter(RunState.ASSEMBLING)
        manifest = assemble_manifest(
            template, app_files, stamp, config.fallbacks, v.render_template
        )

        # --- 6. Write ---
        self._enter(RunState.WRITING)
        out = manifest_path(target)
        v.write(out, manifest)
        logging.info(f"Generated {out} with {len(app_files)} entries.")

        self._enter(RunState.DONE)
        return {
            "dir": str(target),
            "html_path": str(html_file),
            "manifest_path": str(out),
            "file_count": len(app_files),
            "stamp": stamp,
            "state": self.state.value,
            "error": None
        }


class ShellCommand:
    """Dependency command that runs a shell command line."""

    def __init__(self, cmd: str, cwd: Optional[Path] = None):
        self.cmd = cmd
        self.cwd = cwd

    @property
    def depends(self) -> List[Any]:
        return []

    @property
    def summary(self) -> str:
        return f"Runs `{self.cmd}`"

    async def run(self, toolbox: Optional[Toolbox] = None, **named_args) -> Dict[str, Any]:
        result = {"command": self.cmd, "error": None}
        try:
            proc = await asyncio.to_thread(run_command, self.cmd, self.cwd)
            if proc.stdout:
                logging.debug(proc.stdout.rstrip())
            logging.info(f"Ran {self.cmd}")
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip()
            result["error"] = f"Command `{self.cmd}` exited with {e.returncode}" + (f": {detail}" if detail else "")
        except OSError as e:
            result["error"] = f"Command `{self.cmd}` could not be started: {e}"
        return result


def as_command(dep: Any) -> Any:
    if isinstance(dep, str):
        return ShellCommand(dep)
    if callable(getattr(dep, "run", None)):
        return dep
    raise ConfigError(f"Dependency must be a command or a shell command string, got {dep!r}")


class AppcacheCommand:
    """
    Generates manifest.appcache for a built site directory.

    run() never raises: any failure is reported in the "error" field of the
    returned result, and "state" tells which stage it stopped in.
    """

    def __init__(self, config: Optional[AppcacheConfig] = None):
        self.config = config or AppcacheConfig()
        self._depends = [as_command(d) for d in self.config.depends]

    @property
    def summary(self) -> str:
        return (
            f"Generates the {MANIFEST_NAME} file for {self.config.dir} and "
            f"modifies {self.config.html_path} to add the \"manifest\" attribute "
            f"to the <html> tag."
        )

    @property
    def depends(self) -> List[Any]:
        return list(self._depends)

    async def run(self, toolbox: Optional[Toolbox] = None, **named_args) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "dir": self.config.dir,
            "html_path": str(self.config.html_file),
            "manifest_path": None,
            "file_count": 0,
            "stamp": None,
            "state": RunState.IDLE.value,
            "error": None
        }
        try:
            config = self.config
            if named_args:
                overrides = normalize_options(named_args)
                if "depends" in overrides:
                    raise ConfigError("depends is fixed when the command is created")
                config = replace(config, **overrides)
            result.update(await AppcacheRun(config, toolbox).execute())
        except Exception as e:
            logging.debug("appcache run failed", exc_info=True)
            result["state"] = RunState.FAILED.value
            result["error"] = str(e)
        return result


def _describe(command: Any) -> str:
    return getattr(command, "summary", None) or repr(command)


async def execute(command: Any, toolbox: Optional[Toolbox] = None, **named_args) -> Dict[str, Any]:
    """Runs the command's dependencies in order, then the command itself.

    Stops at the first dependency that reports an error.
    """
    for dep in getattr(command, "depends", None) or []:
        try:
            dep_result = await execute(dep, toolbox)
        except Exception as e:
            logging.debug("dependency raised", exc_info=True)
            dep_result = {"error": f"{type(e).__name__}: {e}"}
        if not isinstance(dep_result, Mapping):
            dep_result = {"error": f"returned {dep_result!r} instead of a result"}
        if dep_result.get("error"):
            return {
                "state": RunState.FAILED.value,
                "error": f"Dependency failed: {_describe(dep)}: {dep_result['error']}"
            }
    return await command.run(toolbox, **named_args)


def execute_sync(command: Any, toolbox: Optional[Toolbox] = None, **named_args) -> Dict[str, Any]:
    return asyncio.run(execute(command, toolbox, **named_args))
