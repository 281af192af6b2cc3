import re

MANIFEST_NAME = "manifest.appcache"
MANIFEST_ATTR = f'manifest="{MANIFEST_NAME}"'

# First opening root tag: "<html" followed by whitespace or the tag end
_ROOT_TAG_RE = re.compile(r"<(html)(?=[\s>/])([^>]*)>", re.IGNORECASE)
# One attribute of the root tag, quoted values consumed whole
_ATTR_RE = re.compile(
    r"""(\s+)([^\s=>]+)(\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+))?"""
)
# Left behind when the attribute lands right before the tag end:
# <html manifest="manifest.appcache" >
_ARTIFACT_RE = re.compile(r'manifest\.appcache"\s>')


def _drop_manifest_attr(match) -> str:
    return "" if match.group(2).lower() == "manifest" else match.group(0)


def has_root_tag(text: str) -> bool:
    return _ROOT_TAG_RE.search(text) is not None


def patch_html(text: str) -> str:
    """
    Points the document's <html> tag at manifest.appcache.

    Only the first root tag is touched. An existing manifest attribute is
    replaced rather than duplicated, so patching twice gives the same text.
    Documents without a root tag are returned unchanged.
    """
    def insert(match):
        tag, attrs = match.group(1), match.group(2)
        attrs = _ATTR_RE.sub(_drop_manifest_attr, attrs)
        return f"<{tag} {MANIFEST_ATTR} {attrs.lstrip()}>"

    patched = _ROOT_TAG_RE.sub(insert, text, count=1)
    return _ARTIFACT_RE.sub(f'{MANIFEST_NAME}">', patched)
