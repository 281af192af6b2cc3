import re
import pytest
from pathlib import Path
from appcache_manifest.util import Toolbox
from appcache_manifest.errors import ReadError, TemplateError

toolbox = Toolbox()

def make_tree(root: Path):
    (root / "b").mkdir()
    (root / "b" / "z.js").write_text("z")
    (root / "a.html").write_text("a")
    (root / "c.css").write_text("c")
    (root / ".htaccess").write_text("h")

def test_list_files_sorted_and_absolute(tmp_path):
    make_tree(tmp_path)
    files = toolbox.list_files(tmp_path)
    assert all(p.is_absolute() for p in files)
    assert [p.relative_to(tmp_path.resolve()).as_posix() for p in files] == [
        ".htaccess", "a.html", "b/z.js", "c.css"
    ]

def test_list_files_exclude(tmp_path):
    make_tree(tmp_path)
    files = toolbox.list_files(tmp_path, None, r"\.htaccess")
    assert ".htaccess" not in [p.name for p in files]
    assert len(files) == 3

def test_list_files_include_compiled(tmp_path):
    make_tree(tmp_path)
    files = toolbox.list_files(tmp_path, re.compile(r"\.(js|css)$"))
    assert [p.name for p in files] == ["z.js", "c.css"]

def test_list_files_stable(tmp_path):
    make_tree(tmp_path)
    assert toolbox.list_files(tmp_path) == toolbox.list_files(tmp_path)

def test_read_missing(tmp_path):
    with pytest.raises(ReadError):
        toolbox.read(tmp_path / "missing.txt")

def test_write_creates_parents(tmp_path):
    target = tmp_path / "deep" / "dir" / "out.txt"
    toolbox.write(target, "line1\nline2\n")
    assert target.read_bytes() == b"line1\nline2\n"
    assert toolbox.exists(target)

def test_render_template():
    assert toolbox.render_template("{a}-{b}-{a}", {"a": "1", "b": 2}) == "1-2-1"

def test_render_template_leaves_values_alone():
    # Substituted values are not scanned for tokens again
    assert toolbox.render_template("{files}", {"files": "{stamp}"}) == "{stamp}"

def test_render_template_missing_value():
    with pytest.raises(TemplateError):
        toolbox.render_template("{missing}", {})
