"""Options for the manifest command, resolved and validated once."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple, Union

from .errors import AppcacheError

DEFAULT_DIR = "www-built"
DEFAULT_HTML_PATH = "index.html"
DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "manifest.template"

# camelCase spellings accepted in config files and named arguments
_KEY_ALIASES = {
    "htmlPath": "html_path",
    "manifestTemplate": "manifest_template",
}
_KNOWN_KEYS = {"dir", "html_path", "manifest_template", "extras", "fallbacks", "depends"}


class ConfigError(AppcacheError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def _normalize_fallbacks(value: Any) -> Tuple[Tuple[str, str], ...]:
    if value is None:
        return ()
    if isinstance(value, Mapping):
        items = value.items()
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigError(f"fallbacks must be a mapping or a list of pairs (got {value!r})")
    pairs = []
    for item in items:
        if not isinstance(item, (tuple, list)) or len(item) != 2:
            raise ConfigError(f"Fallback entries must be (resource, fallback) pairs, got {item!r}")
        resource, fallback = item
        if not isinstance(resource, str) or not isinstance(fallback, str):
            raise ConfigError(f"Fallback entries must be strings, got {item!r}")
        if not resource or not fallback:
            raise ConfigError(f"Fallback entries cannot be empty, got {item!r}")
        pairs.append((resource, fallback))
    return tuple(pairs)


@dataclass(frozen=True)
class AppcacheConfig:
    """Configuration for one manifest run.

    fallbacks accepts a mapping or a sequence of pairs; either way the
    configured order is kept.
    """

    dir: str = DEFAULT_DIR
    html_path: str = DEFAULT_HTML_PATH
    manifest_template: Union[str, Path] = DEFAULT_TEMPLATE
    extras: Sequence[str] = ()
    fallbacks: Any = ()
    depends: Sequence[Any] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.dir, str):
            raise ConfigError(f"Target directory must be a string (got {self.dir!r})")
        if not self.dir:
            raise ConfigError("Target directory cannot be empty")
        # Strip a single trailing separator, "www-built/" -> "www-built"
        if len(self.dir) > 1 and self.dir[-1] in "/\\":
            object.__setattr__(self, "dir", self.dir[:-1])

        if not isinstance(self.html_path, str):
            raise ConfigError(f"HTML path must be a string (got {self.html_path!r})")
        if not self.html_path:
            raise ConfigError("HTML path cannot be empty")
        if Path(self.html_path).is_absolute():
            raise ConfigError(f"HTML path must be relative to {self.dir} (got {self.html_path})")

        if not isinstance(self.manifest_template, (str, Path)):
            raise ConfigError(f"Manifest template must be a path (got {self.manifest_template!r})")
        if not self.manifest_template:
            raise ConfigError("Manifest template path cannot be empty")

        if self.extras is not None and not isinstance(self.extras, (list, tuple)):
            raise ConfigError("extras must be a list of paths, not a single value")
        extras = tuple(self.extras or ())
        for extra in extras:
            if not isinstance(extra, str) or not extra:
                raise ConfigError(f"Invalid extra cache path: {extra!r}")
        object.__setattr__(self, "extras", extras)

        object.__setattr__(self, "fallbacks", _normalize_fallbacks(self.fallbacks))
        if self.depends is None:
            object.__setattr__(self, "depends", ())
        elif not isinstance(self.depends, (list, tuple)):
            raise ConfigError("depends must be a list of commands, not a single value")
        object.__setattr__(self, "depends", tuple(self.depends))

    @property
    def html_file(self) -> Path:
        return Path(self.dir) / self.html_path


def normalize_options(data: Mapping[str, Any]) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    for key, value in data.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in _KNOWN_KEYS:
            raise ConfigError(f"Unknown configuration key: {key}")
        options[name] = value
    return options


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load options from a JSON configuration file.

    Returns the normalized option dict so callers can layer overrides on
    top before building an AppcacheConfig. Relative template paths are
    resolved against the config file's directory.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse JSON configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    options = normalize_options(data)

    template = options.get("manifest_template")
    if isinstance(template, str) and template and not Path(template).is_absolute():
        options["manifest_template"] = path.parent / template

    return options
