"""Layered configuration for usergate.

Configuration is assembled from pydantic models (or plain dicts), overlaid with environment variables of the form
``SECTION__KEY=value`` and stored as a ``dict`` of strings. Fields declared as ``SecretStr`` are masked when read
through normal access and can be recovered with :meth:`Config.get_secret`.
"""

import os
from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings

SECRET_MASK = "********"

SettingsLike = Union[
    Dict[str, Any],
    List[Union[Dict[str, Any], BaseSettings, BaseModel]],
    BaseSettings,
    BaseModel,
    None,
]


class UsergateSettings(BaseModel):
    """Settings for the usergate API and its storage / auth layers."""

    # Service
    URL: str = "http://localhost:3000"
    ENVIRONMENT: str = "development"
    CLIENT_URL: str = "http://localhost:5173"

    # Storage
    DATABASE_TYPE: str = "mongodb"
    MONGODB_URI: str = "mongodb://localhost:27017/usergate"
    MONGODB_USER: str = ""
    MONGODB_PASS: Optional[SecretStr] = SecretStr("")
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    CONNECTION_EVENT_HISTORY: int = 256

    # Auth / JWT
    JWT_SECRET: SecretStr = SecretStr("dev-secret-key")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL: int = 15 * 60
    REFRESH_TOKEN_TTL: int = 7 * 24 * 60 * 60

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "~/.cache/usergate/logs"
    USE_STRUCTLOG: bool = False


class _AttrView:
    """Attribute-access wrapper around a nested mapping (``cfg.SECTION.KEY``)."""

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._data:
            return _wrap(self._data[name])
        raise AttributeError(f"No such attribute: {name}")

    def __getitem__(self, key: str):
        return _wrap(self._data[key])

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return _wrap(self._data[key]) if key in self._data else default

    def __repr__(self) -> str:
        return f"_AttrView({self._data!r})"


def _wrap(value: Any) -> Any:
    if isinstance(value, dict):
        return _AttrView(value)
    if isinstance(value, list):
        return [_AttrView(v) if isinstance(v, dict) else v for v in value]
    return value


class Config(dict):
    """Unified configuration mapping.

    Args:
        extra_settings: A dict, pydantic model, or list of either. Later items override earlier ones.
        apply_env: Overlay ``SECTION__KEY`` environment variables on top of the provided settings.

    Example:
        >>> from usergate.core.config import Config, UsergateSettings
        >>> config = Config({"USERGATE": UsergateSettings()})
        >>> config.USERGATE.JWT_SECRET
        '********'
        >>> config.get_secret("USERGATE", "JWT_SECRET")
        'dev-secret-key'
    """

    def __init__(self, extra_settings: SettingsLike = None, *, apply_env: bool = True):
        self._secret_paths: set[Tuple[str, ...]] = set()
        self._secrets: Dict[Tuple[str, ...], str] = {}

        merged: Dict[str, Any] = {}
        for item in self._normalize(extra_settings):
            merged = _deep_update(merged, item)

        if apply_env:
            merged = _apply_env_overrides(merged)

        super().__init__(self._stringify_and_mask(merged))

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self:
            return _wrap(self[name])
        raise AttributeError(f"No such attribute: {name}")

    @classmethod
    def load(
        cls,
        *,
        defaults: Optional[Union[Dict[str, Any], BaseModel]] = None,
        overrides: SettingsLike = None,
    ) -> "Config":
        """Build a Config with precedence defaults < environment < overrides."""
        probe = cls(defaults, apply_env=False)
        base = [defaults] if defaults is not None else []
        env_layer = _apply_env_overrides({section: {} for section in probe.keys()})
        layers: List[Any] = base + [env_layer]
        if isinstance(overrides, list):
            layers.extend(overrides)
        elif overrides is not None:
            layers.append(overrides)
        return cls(layers, apply_env=False)

    def get_secret(self, *path: str) -> Optional[str]:
        """Retrieve the real value of a masked secret, e.g. ``get_secret("USERGATE", "JWT_SECRET")``."""
        return self._secrets.get(tuple(path))

    def secret_paths(self) -> List[str]:
        """Return the dotted paths of all fields treated as secrets."""
        return sorted(".".join(p) for p in self._secret_paths)

    def _normalize(self, extra_settings: SettingsLike) -> List[Dict[str, Any]]:
        if extra_settings is None:
            return []
        items = extra_settings if isinstance(extra_settings, list) else [extra_settings]
        result: List[Dict[str, Any]] = []
        for item in items:
            if isinstance(item, BaseModel):
                self._secret_paths.update(_secret_paths_of(type(item)))
                result.append(item.model_dump())
            elif isinstance(item, dict):
                result.append(self._dump_nested_models(item, ()))
        return result

    def _dump_nested_models(self, data: Dict[str, Any], prefix: Tuple[str, ...]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, BaseModel):
                self._secret_paths.update(_secret_paths_of(type(value), prefix + (key,)))
                out[key] = value.model_dump()
            elif isinstance(value, dict):
                out[key] = self._dump_nested_models(value, prefix + (key,))
            else:
                out[key] = value
        return out

    def _stringify_and_mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        def convert(value: Any, path: Tuple[str, ...]) -> Any:
            if isinstance(value, SecretStr):
                self._secrets[path] = value.get_secret_value()
                return SECRET_MASK
            if isinstance(value, dict):
                return {k: convert(v, path + (k,)) for k, v in value.items()}
            if isinstance(value, (list, tuple, set)):
                return [convert(v, path) for v in value]
            text = "" if value is None else str(value)
            if path in self._secret_paths:
                self._secrets[path] = text
                return SECRET_MASK
            return os.path.expanduser(text) if text.startswith("~") else text

        return convert(data, ())


def _deep_update(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_update(base[key], value)
        else:
            base[key] = deepcopy(value)
    return base


def _apply_env_overrides(base: dict, delimiter: str = "__") -> dict:
    """Overlay ``SECTION__KEY`` environment variables for sections already present in ``base``."""
    result = deepcopy(base)
    for env_key, env_value in os.environ.items():
        if delimiter not in env_key:
            continue
        parts = [p.strip().upper() for p in env_key.split(delimiter) if p.strip()]
        if len(parts) < 2 or parts[0] not in result:
            continue
        node = result
        for key in parts[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[parts[-1]] = env_value
    return result


def _secret_paths_of(model_cls: type[BaseModel], prefix: Tuple[str, ...] = ()) -> set[Tuple[str, ...]]:
    paths: set[Tuple[str, ...]] = set()
    for name, field in model_cls.model_fields.items():
        ann = field.annotation
        if ann is SecretStr or (get_origin(ann) is Union and SecretStr in get_args(ann)):
            paths.add(prefix + (name,))
        elif isinstance(ann, type) and issubclass(ann, BaseModel):
            paths.update(_secret_paths_of(ann, prefix + (name,)))
    return paths


_config: Optional[Config] = None


def get_usergate_config() -> Config:
    """Get the cached usergate configuration.

    Supports environment overrides using the ``USERGATE__`` prefix, e.g.::

        export USERGATE__MONGODB_URI=mongodb://mongo:27017/usergate
        export USERGATE__ENVIRONMENT=production
    """
    global _config
    if _config is None:
        _config = Config.load(defaults={"USERGATE": UsergateSettings()})
    return _config


def reset_usergate_config() -> None:
    """Reset the config cache. Useful for testing."""
    global _config
    _config = None
