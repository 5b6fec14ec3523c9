# services/config_bridge.py
from __future__ import annotations
from typing import Any
from flask import current_app, has_app_context
from services.config_service import ConfigManager

_CM = ConfigManager()


def lookup(node: Any, key: str, default=None):
    """Walk a dotted key ("event_sink.url") through nested dicts."""
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return default if node is None else node


def _app_layers(section: str) -> list:
    # app.config[section] first, then the <SECTION>_DEFAULTS class attribute
    if not has_app_context():
        return []
    return [current_app.config.get(section), current_app.config.get(f"{section.upper()}_DEFAULTS")]


def get_cfg(key: str | None = None, *, section: str = "write_offs", default=None):
    """
    config.json first, then Flask app.config.
    - get_cfg()                  -> whole `section` dict
    - get_cfg("event_sink.url")  -> nested value, or `default`
    Raises RuntimeError when config.json exists but is not valid JSON.
    """
    err = _CM.last_load_error
    if err:
        raise RuntimeError(
            "Config JSON is invalid.\n"
            f"File: {_CM.resolved_path}\n"
            f"Line {err.lineno}, column {err.colno}: {err.msg}"
        )

    layers = [_CM.get(section)] + _app_layers(section)
    layers = [layer for layer in layers if isinstance(layer, dict)]

    if key is None:
        return layers[0] if layers else default

    for layer in layers:
        val = lookup(layer, key)
        if val is not None:
            return val
    return default


def where_cfg(section: str = "write_offs") -> str:
    loaded = _CM.get(section) is not None
    return f"config.json path={_CM.resolved_path!r}; section_present={loaded}; last_error={_CM.last_load_error}"
