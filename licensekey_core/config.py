# licensekey_core/config.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union
import json, os

from .constants import (
    DEFAULT_PENDING_WINDOW,
    LICENSE_KEY_DESCRIPTION,
    LICENSE_KEY_EXPORT,
    LICENSE_KEY_ID,
    LICENSE_KEY_TAGS,
    KeySpec,
    KeyUsage,
)
from .descriptor import Tag
from .errors import ConfigurationError
from .policy import PolicyStatement, account_root_admin_statement

_FIELDS = {
    "description",
    "key_usage",
    "key_spec",
    "rotation_enabled",
    "enabled",
    "tags",
    "policy",
    "pending_window_days",
    "export_name",
    "logical_id",
}


@dataclass(frozen=True)
class KeyConfig:
    """
    Typed configuration for one signing key.

    Tags are kept in declaration order and duplicates are NOT collapsed here;
    the builder rejects them.
    """
    description: str
    key_usage: KeyUsage = KeyUsage.SIGN_VERIFY
    key_spec: KeySpec = KeySpec.ECC_NIST_P384
    rotation_enabled: bool = False
    enabled: bool = True
    tags: Tuple[Tag, ...] = ()
    policy: Tuple[PolicyStatement, ...] = field(default_factory=lambda: (account_root_admin_statement(),))
    pending_window_days: int = DEFAULT_PENDING_WINDOW
    export_name: str = LICENSE_KEY_EXPORT
    logical_id: str = LICENSE_KEY_ID

    @classmethod
    def license_key(cls) -> "KeyConfig":
        """The fixed configuration of the license signing key."""
        return cls(
            description=LICENSE_KEY_DESCRIPTION,
            key_usage=KeyUsage.SIGN_VERIFY,
            key_spec=KeySpec.ECC_NIST_P384,
            rotation_enabled=False,
            enabled=True,
            tags=tuple(Tag(k, v) for k, v in LICENSE_KEY_TAGS),
            policy=(account_root_admin_statement(),),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "key_usage": self.key_usage.value,
            "key_spec": self.key_spec.value,
            "rotation_enabled": self.rotation_enabled,
            "enabled": self.enabled,
            "tags": [t.to_dict() for t in self.tags],
            "policy": [s.to_dict() for s in self.policy],
            "pending_window_days": self.pending_window_days,
            "export_name": self.export_name,
            "logical_id": self.logical_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyConfig":
        unknown = set(data) - _FIELDS
        if unknown:
            raise ConfigurationError(f"unknown configuration fields: {sorted(unknown)}")

        base = cls.license_key()
        kwargs: Dict[str, Any] = {}
        if "description" in data:
            kwargs["description"] = str(data["description"])
        if "key_usage" in data:
            kwargs["key_usage"] = _enum(KeyUsage, data["key_usage"], "key_usage")
        if "key_spec" in data:
            kwargs["key_spec"] = _enum(KeySpec, data["key_spec"], "key_spec")
        for flag in ("rotation_enabled", "enabled"):
            if flag in data:
                if not isinstance(data[flag], bool):
                    raise ConfigurationError(f"{flag} must be a boolean", field=flag)
                kwargs[flag] = data[flag]
        if "tags" in data:
            kwargs["tags"] = _parse_tags(data["tags"])
        if "policy" in data:
            if not isinstance(data["policy"], list) or not all(isinstance(s, dict) for s in data["policy"]):
                raise ConfigurationError("policy must be a list of statements", field="policy")
            kwargs["policy"] = tuple(PolicyStatement.from_dict(s) for s in data["policy"])
        if "pending_window_days" in data:
            try:
                kwargs["pending_window_days"] = int(data["pending_window_days"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(str(e), field="pending_window_days") from e
        for name in ("export_name", "logical_id"):
            if name in data:
                kwargs[name] = str(data[name])

        return cls(**{**base.__dict__, **kwargs})


def _enum(enum_cls, value, name):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ConfigurationError(f"unknown {name} {value!r}", field=name) from e


def _parse_tags(raw) -> Tuple[Tag, ...]:
    if isinstance(raw, dict):
        return tuple(Tag(str(k), str(v)) for k, v in raw.items())
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"tags must be a mapping or a list, got {raw!r}", field="tags")
    tags = []
    for item in raw:
        if isinstance(item, dict):
            if "key" not in item:
                raise ConfigurationError(f"tag entry {item!r} has no key", field="tags")
            tags.append(Tag(str(item["key"]), str(item.get("value", ""))))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            tags.append(Tag(str(item[0]), str(item[1])))
        else:
            raise ConfigurationError(f"unrecognised tag entry {item!r}", field="tags")
    return tuple(tags)


def load_config(config: Optional[Union[Dict[str, Any], str]] = None) -> KeyConfig:
    """
    Resolve the key configuration.

    - dict        → parsed as configuration fields
    - str         → path to a JSON file
    - None        → LICENSEKEY_CONFIG if set, else the fixed license key
    """
    if config is None:
        config = os.getenv("LICENSEKEY_CONFIG")
        if not config:
            return KeyConfig.license_key()

    if isinstance(config, str):
        try:
            with open(config, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"cannot read configuration: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError("configuration must be a JSON object")
    return KeyConfig.from_dict(config)
