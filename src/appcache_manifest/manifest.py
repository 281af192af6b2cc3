import logging
from pathlib import Path
from typing import Callable, List, Mapping, Sequence, Tuple, Union, Any

from .htmlpatch import MANIFEST_NAME

FallbackPairs = Sequence[Tuple[str, str]]
Renderer = Callable[[str, Mapping[str, Any]], str]


def app_relative_paths(files: Sequence[Union[str, Path]], directory: Union[str, Path]) -> List[str]:
    """
    Strips everything up to and including the target directory from each path.
    Paths outside the directory are returned as given.
    """
    root = Path(directory).resolve()
    rel_paths = []
    for f in files:
        p = Path(f)
        try:
            rel_paths.append(p.relative_to(root).as_posix())
        except ValueError:
            logging.debug(f"{p} is outside {root}, keeping it as is")
            rel_paths.append(p.as_posix())
    return rel_paths


def build_file_list(
    files: Sequence[Union[str, Path]],
    directory: Union[str, Path],
    extras: Sequence[str] = ()
) -> List[str]:
    """Enumerated files first, then the configured extras in their order."""
    return app_relative_paths(files, directory) + list(extras)


def render_fallbacks(fallbacks: FallbackPairs) -> List[str]:
    return [f"{resource} {fallback}" for resource, fallback in fallbacks]


def assemble_manifest(
    template: str,
    files: Sequence[str],
    stamp: str,
    fallbacks: FallbackPairs,
    render: Renderer
) -> str:
    """
    Fills the manifest template. Section layout (CACHE/FALLBACK/NETWORK)
    is left entirely to the template.
    """
    return render(template, {
        "files": "\n".join(files),
        "stamp": stamp,
        "fallback": "\n".join(render_fallbacks(fallbacks))
    })


def manifest_path(directory: Union[str, Path]) -> Path:
    return Path(directory) / MANIFEST_NAME
