import json
import logging
from pathlib import Path

from dist_deployer.core.paths import app_data_dir, package_root

LANGUAGES = ("tr", "en")
DEFAULT_LANGUAGE = "en"

_LANG: dict = {}
_CURRENT = DEFAULT_LANGUAGE


def _lang_file() -> Path:
    return app_data_dir() / "language.json"


def _i18n_dir() -> Path:
    return package_root() / "i18n"


def load_language(lang: str = DEFAULT_LANGUAGE) -> None:
    global _LANG, _CURRENT
    path = _i18n_dir() / f"{lang}.json"
    with open(path, "r", encoding="utf-8") as f:
        _LANG = json.load(f)
    _CURRENT = lang


def current_language() -> str:
    return _CURRENT


def set_language(lang: str) -> None:
    """Set UI language and persist it under <app dir>/language.json."""
    load_language(lang)
    try:
        with open(_lang_file(), "w", encoding="utf-8") as f:
            json.dump({"lang": lang}, f)
    except Exception:
        # non-fatal
        pass


def load_saved_language(default: str = DEFAULT_LANGUAGE) -> str:
    """Load persisted language if present; returns the language code used.

    The OS locale is not consulted, so log lines stay English by default.
    """
    lang = default
    try:
        p = _lang_file()
        if p.exists():
            data = json.loads(p.read_text(encoding="utf-8"))
            if isinstance(data, dict) and data.get("lang") in LANGUAGES:
                lang = data["lang"]
    except Exception:
        pass
    load_language(lang)
    return lang


def t(key: str, **kwargs) -> str:
    cur = _LANG
    try:
        for part in key.split("."):
            cur = cur[part]
    except Exception:
        return f"[{key}]"
    if not isinstance(cur, str):
        return f"[{key}]"
    return cur.format(**kwargs) if kwargs else cur


def _flatten_keys(d: dict, prefix: str = "") -> set[str]:
    keys: set[str] = set()
    for k, v in (d or {}).items():
        if not isinstance(k, str):
            continue
        p = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict):
            keys |= _flatten_keys(v, p)
        else:
            keys.add(p)
    return keys


def missing_keys() -> dict[str, list[str]]:
    """Keys present in one language file but not in another."""
    loaded = {}
    for lang in LANGUAGES:
        with open(_i18n_dir() / f"{lang}.json", "r", encoding="utf-8") as f:
            loaded[lang] = _flatten_keys(json.load(f))
    every = set().union(*loaded.values())
    return {lang: sorted(every - keys) for lang, keys in loaded.items()}


def validate_language_files() -> None:
    """Log-only regression guard: detect i18n key drift. No UI."""
    log = logging.getLogger("dist_deployer.i18n")
    try:
        drift = missing_keys()
    except Exception:
        log.warning("i18n files could not be read", exc_info=True)
        return
    for lang, keys in drift.items():
        if keys:
            log.warning(f"i18n key drift: missing in {lang}.json: {len(keys)}")
            for k in keys[:50]:
                log.warning(f"  missing_{lang}: {k}")
