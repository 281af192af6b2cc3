import json
import dataclasses
import pytest
from pathlib import Path
from appcache_manifest.config import (
    AppcacheConfig, ConfigError, DEFAULT_TEMPLATE, load_config, normalize_options
)

def test_defaults():
    config = AppcacheConfig()
    assert config.dir == "www-built"
    assert config.html_path == "index.html"
    assert Path(config.manifest_template) == DEFAULT_TEMPLATE
    assert DEFAULT_TEMPLATE.exists()
    assert config.extras == ()
    assert config.fallbacks == ()
    assert config.depends == ()

def test_trailing_separator_stripped():
    assert AppcacheConfig(dir="site/").dir == "site"
    assert AppcacheConfig(dir="site\\").dir == "site"

def test_html_file():
    assert AppcacheConfig(dir="out", html_path="app/index.html").html_file == Path("out/app/index.html")

def test_fallback_mapping_order_kept():
    config = AppcacheConfig(fallbacks={"/b": "/b.html", "/a": "/a.html"})
    assert config.fallbacks == (("/b", "/b.html"), ("/a", "/a.html"))

def test_fallback_pairs_accepted():
    config = AppcacheConfig(fallbacks=[["/a", "/off.html"]])
    assert config.fallbacks == (("/a", "/off.html"),)

@pytest.mark.parametrize("bad", [["/a"], [("/a", 1)], [("", "/x")], ["/a /b"]])
def test_invalid_fallbacks(bad):
    with pytest.raises(ConfigError):
        AppcacheConfig(fallbacks=bad)

def test_extras_must_be_list():
    with pytest.raises(ConfigError):
        AppcacheConfig(extras="x.js")

def test_absolute_html_path_rejected(tmp_path):
    with pytest.raises(ConfigError):
        AppcacheConfig(html_path=str(tmp_path / "index.html"))

def test_empty_dir_rejected():
    with pytest.raises(ConfigError):
        AppcacheConfig(dir="")

def test_config_is_frozen():
    config = AppcacheConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.dir = "other"

def test_normalize_options_camel_case():
    assert normalize_options({"htmlPath": "a.html", "manifestTemplate": "t"}) == {
        "html_path": "a.html", "manifest_template": "t"
    }
    with pytest.raises(ConfigError):
        normalize_options({"bogus": 1})

def test_load_config(tmp_path):
    cfg = tmp_path / "appcache.json"
    cfg.write_text(json.dumps({
        "dir": "dist",
        "htmlPath": "main.html",
        "manifestTemplate": "tmpl/manifest.template",
        "extras": ["x.js", "y.js"],
        "fallbacks": {"/a": "/a-off.html", "/b": "/b-off.html"},
        "depends": ["echo built"]
    }))
    options = load_config(cfg)
    assert options["manifest_template"] == tmp_path / "tmpl" / "manifest.template"

    config = AppcacheConfig(**options)
    assert config.dir == "dist"
    assert config.html_path == "main.html"
    assert config.extras == ("x.js", "y.js")
    assert config.fallbacks == (("/a", "/a-off.html"), ("/b", "/b-off.html"))
    assert config.depends == ("echo built",)

def test_load_config_missing(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")

def test_load_config_bad_json(tmp_path):
    cfg = tmp_path / "bad.json"
    cfg.write_text("{not json")
    with pytest.raises(ConfigError, match="parse"):
        load_config(cfg)

def test_load_config_not_object(tmp_path):
    cfg = tmp_path / "list.json"
    cfg.write_text("[]")
    with pytest.raises(ConfigError):
        load_config(cfg)

@pytest.mark.parametrize("options", [
    {"dir": 5},
    {"html_path": ["index.html"]},
    {"manifest_template": 7},
    {"extras": 3},
    {"fallbacks": 1},
    {"depends": "npm run build"},
    {"depends": 1},
])
def test_wrong_option_types_rejected(options):
    with pytest.raises(ConfigError):
        AppcacheConfig(**options)

def test_depends_none_is_empty():
    assert AppcacheConfig(depends=None).depends == ()

def test_load_config_non_string_template(tmp_path):
    cfg = tmp_path / "appcache.json"
    cfg.write_text(json.dumps({"manifestTemplate": 7}))
    options = load_config(cfg)
    with pytest.raises(ConfigError):
        AppcacheConfig(**options)
