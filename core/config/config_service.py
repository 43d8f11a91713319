"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir() and (parent / "signing").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"

ENV_PREFIX = "DOCSIGN_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Database": {
        "signing": "databases/signing.db",
        "logging": "databases/logs.db",
    },
    "Storage": {
        "managed_mode": "false",
        "document_root": "public",
        "blob_prefix": "/api/document-files",
        "signed_dir": "uploads/signed",
        "documents_dir": "uploads/documents",
    },
    "Signing": {
        "key_file": "databases/signature.key",
        "strategy_timeout": "30",
        "x_ratio": "0.70",
        "y_ratio": "0.52",
        "image_width": "150",
        "image_height": "60",
        "text_font_size": "14",
    },
    "Logging": {
        "level": "INFO",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class DatabaseConfig:
    signing: Path
    logging: Path


@dataclass
class StorageConfig:
    managed_mode: bool = False
    document_root: Path = Path("public")
    blob_prefix: str = "/api/document-files"
    signed_dir: str = "uploads/signed"
    documents_dir: str = "uploads/documents"


@dataclass
class SigningConfig:
    key_file: Path = Path("databases/signature.key")
    strategy_timeout: float = 30.0
    x_ratio: float = 0.70
    y_ratio: float = 0.52
    image_width: float = 150.0
    image_height: float = 60.0
    text_font_size: int = 14


@dataclass
class LoggingConfig:
    level: str = "INFO"


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Mapping[str, Mapping[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    # field.type is a string under postponed annotations
    if isinstance(typ, str):
        typ = {"Path": Path, "bool": bool, "int": int, "float": float, "str": str}[typ]
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety.

    Precedence (lowest first): embedded defaults, ``defaults.ini``,
    ``DOCSIGN_<SECTION>__<KEY>`` environment variables, the machine
    ``config.ini`` and finally explicit ``overrides``.

    Relative paths in ``[Database]``, ``[Storage] document_root`` and
    ``[Signing] key_file`` are resolved against ``base_dir``.
    """

    def __init__(
        self,
        *,
        defaults_ini: Optional[Path] = DEFAULTS_INI,
        machine_ini: Optional[Path] = MACHINE_INI,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
        base_dir: Optional[Path] = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = defaults_ini
        self._machine_ini = machine_ini
        self._environ = os.environ if environ is None else environ
        self._overrides = overrides or {}
        self._base_dir = Path(base_dir) if base_dir is not None else PROJECT_ROOT
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini is not None and self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini",
                       str(self._defaults_ini), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini is not None and self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine",
                       str(self._machine_ini), sources)

            # Layer 4: explicit overrides
            _apply(merged, self._overrides, "override", "constructor", sources)

            self._merged = merged
            self._sources = sources

            self.database = _build_dataclass(DatabaseConfig, merged.get("Database", {}))
            self.storage = _build_dataclass(StorageConfig, merged.get("Storage", {}))
            self.signing = _build_dataclass(SigningConfig, merged.get("Signing", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))

            self.database.signing = self._resolve(self.database.signing)
            self.database.logging = self._resolve(self.database.logging)
            self.storage.document_root = self._resolve(self.storage.document_root)
            self.signing.key_file = self._resolve(self.signing.key_file)

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self._base_dir / path

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))
