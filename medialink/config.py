import os
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .models import MEDIA_TYPES, AppConfig, LinkRule, Settings

# Older configs used camelCase keys.
_ALIASES = {
    "targetPath": "target_path",
    "targetFormat": "target_format",
    "allowedExtensions": "allowed_extensions",
    "ignoredExtensions": "ignored_extensions",
    "allowedSize": "allowed_size",
    "strictType": "strict_type",
    "useHighestQuality": "use_highest_quality",
}


def _normalize_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in raw.items()}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_size(name: str, value: Any) -> List[float]:
    sizes = _as_list(value)
    if len(sizes) > 2:
        raise ConfigError(f"rule {name!r}: allowed_size takes at most two bounds, got {len(sizes)}")
    out = []
    for s in sizes:
        if isinstance(s, bool) or not isinstance(s, (int, float)):
            raise ConfigError(f"rule {name!r}: allowed_size entries must be numbers, got {s!r}")
        out.append(s)
    return out


def parse_rule(raw: Dict[str, Any], index: int) -> LinkRule:
    r = _normalize_keys(raw or {})
    name = str(r.get("name") or f"rule-{index}")

    for key in ("directories", "target_path", "target_format"):
        if not r.get(key):
            raise ConfigError(f"rule {name!r}: missing required key {key!r}")

    strict_type: Optional[str] = r.get("strict_type") or None
    if strict_type is not None and strict_type not in MEDIA_TYPES:
        raise ConfigError(f"rule {name!r}: strict_type must be one of {MEDIA_TYPES}, got {strict_type!r}")

    return LinkRule(
        name=name,
        directories=[str(d) for d in _as_list(r.get("directories"))],
        target_path=str(r["target_path"]),
        target_format=str(r["target_format"]),
        allowed_extensions=[str(e) for e in _as_list(r.get("allowed_extensions"))],
        ignored_extensions=[str(e) for e in _as_list(r.get("ignored_extensions"))],
        allowed_size=_parse_size(name, r.get("allowed_size")),
        strict_type=strict_type,
        use_highest_quality=r.get("use_highest_quality") is True,
        enabled=r.get("enabled", True) is not False,
    )


def parse_config(raw: Dict[str, Any]) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    settings_raw = raw.get("settings") or {}
    settings = Settings(
        log_level=os.getenv("LOG_LEVEL", settings_raw.get("log_level", "INFO")),
        log_file=settings_raw.get("log_file"),
        watch=bool(settings_raw.get("watch", True)),
        use_polling=bool(settings_raw.get("use_polling", False)),
        run_on_startup=bool(settings_raw.get("run_on_startup", True)),
        rescan_cron=os.getenv("RESCAN_CRON", settings_raw.get("rescan_cron", "30 3 * * *")) or "",
    )

    rules = [parse_rule(r, i) for i, r in enumerate(raw.get("rules") or [])]
    return AppConfig(settings=settings, rules=rules)


def load_config(cfg_path: Optional[str] = None) -> AppConfig:
    cfg_path = cfg_path or os.getenv("APP_CONFIG", "/config/config.yaml")
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config {cfg_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {cfg_path}: {e}") from e

    return parse_config(raw)
