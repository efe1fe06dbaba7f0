"""
licensekey_core.descriptor
--------------------------
Defines KeyDescriptor, the desired end-state of one KMS key, and
ExportedOutput, the stack-scoped export of that key's ARN.

Descriptors are immutable values. Once submitted, the key's identity is owned
by the provisioning engine; nothing here tracks live resource state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import re
from typing import Any, Dict, Tuple

from .constants import (
    DEFAULT_PENDING_WINDOW,
    EXPORT_NAME_PATTERN,
    PENDING_WINDOW_MAX,
    PENDING_WINDOW_MIN,
    RESERVED_TAG_PREFIX,
    SUPPORTED_USAGES,
    TAG_KEY_MAX,
    TAG_VALUE_MAX,
    KeySpec,
    KeyUsage,
)
from .errors import ConfigurationError
from .policy import PolicyStatement, validate_policy
from .utils import canonical_json, sha256

_EXPORT_RE = re.compile(EXPORT_NAME_PATTERN)


@dataclass(frozen=True)
class Tag:
    key: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class KeyDescriptor:
    logical_id: str
    description: str
    key_usage: KeyUsage
    key_spec: KeySpec
    rotation_enabled: bool
    enabled: bool
    tags: Tuple[Tag, ...] = ()
    policy: Tuple[PolicyStatement, ...] = ()
    pending_window_days: int = DEFAULT_PENDING_WINDOW

    def __post_init__(self):
        # tags are a set; a stable order keeps canonical bytes identical
        object.__setattr__(self, "tags", tuple(sorted(self.tags, key=lambda t: (t.key, t.value))))
        object.__setattr__(self, "policy", tuple(self.policy))

    def tag_map(self) -> Dict[str, str]:
        return {t.key: t.value for t in self.tags}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logical_id": self.logical_id,
            "description": self.description,
            "key_usage": self.key_usage.value,
            "key_spec": self.key_spec.value,
            "rotation_enabled": self.rotation_enabled,
            "enabled": self.enabled,
            "tags": [t.to_dict() for t in self.tags],
            "policy": [s.to_dict() for s in self.policy],
            "pending_window_days": self.pending_window_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyDescriptor":
        return cls(
            logical_id=data["logical_id"],
            description=data.get("description", ""),
            key_usage=KeyUsage(data["key_usage"]),
            key_spec=KeySpec(data["key_spec"]),
            rotation_enabled=bool(data.get("rotation_enabled", False)),
            enabled=bool(data.get("enabled", True)),
            tags=tuple(Tag(t["key"], t["value"]) for t in data.get("tags", [])),
            policy=tuple(PolicyStatement.from_dict(s) for s in data.get("policy", [])),
            pending_window_days=int(data.get("pending_window_days", DEFAULT_PENDING_WINDOW)),
        )

    def to_canonical_bytes(self) -> bytes:
        return canonical_json(self.to_dict())

    def fingerprint(self) -> str:
        """sha256 over the canonical form; engines diff on this."""
        return sha256(self.to_canonical_bytes())


@dataclass(frozen=True)
class AttributeRef:
    """Unresolved reference to an attribute of a resource that does not exist yet."""
    logical_id: str
    attribute: str = "Arn"


@dataclass(frozen=True)
class ExportedOutput:
    logical_id: str
    export_name: str
    value: AttributeRef
    description: str = field(default="")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logical_id": self.logical_id,
            "export_name": self.export_name,
            "value": {"logical_id": self.value.logical_id, "attribute": self.value.attribute},
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportedOutput":
        v = data["value"]
        return cls(
            logical_id=data["logical_id"],
            export_name=data["export_name"],
            value=AttributeRef(v["logical_id"], v.get("attribute", "Arn")),
            description=data.get("description", ""),
        )


# --------- Validation ----------
def validate_key_usage(key_usage: KeyUsage, key_spec: KeySpec, rotation_enabled: bool) -> None:
    if not isinstance(key_usage, KeyUsage):
        raise ConfigurationError(f"unknown key usage {key_usage!r}", field="key_usage")
    if not isinstance(key_spec, KeySpec):
        raise ConfigurationError(f"unknown key spec {key_spec!r}", field="key_spec")
    if key_usage not in SUPPORTED_USAGES[key_spec]:
        raise ConfigurationError(
            f"{key_spec.value} keys cannot be used for {key_usage.value}", field="key_usage"
        )
    if rotation_enabled and key_spec.is_asymmetric:
        raise ConfigurationError(
            f"automatic rotation is not supported for asymmetric key spec {key_spec.value}",
            field="rotation_enabled",
        )


def validate_tags(tags) -> None:
    seen = set()
    for t in tags:
        if not t.key or len(t.key) > TAG_KEY_MAX:
            raise ConfigurationError(f"tag key {t.key!r} must be 1-{TAG_KEY_MAX} characters", field="tags")
        if len(t.value) > TAG_VALUE_MAX:
            raise ConfigurationError(f"tag {t.key!r} value exceeds {TAG_VALUE_MAX} characters", field="tags")
        if t.key.lower().startswith(RESERVED_TAG_PREFIX):
            raise ConfigurationError(f"tag key {t.key!r} uses the reserved prefix", field="tags")
        if t.key in seen:
            raise ConfigurationError(f"duplicate tag key {t.key!r}", field="tags")
        seen.add(t.key)


def validate_export_name(name: str) -> None:
    if not isinstance(name, str) or not _EXPORT_RE.fullmatch(name):
        raise ConfigurationError(f"invalid export name {name!r}", field="export_name")


def validate_descriptor(d: KeyDescriptor) -> None:
    if not d.logical_id:
        raise ConfigurationError("logical id is empty", field="logical_id")
    validate_key_usage(d.key_usage, d.key_spec, d.rotation_enabled)
    validate_tags(d.tags)
    validate_policy(d.policy)
    if not PENDING_WINDOW_MIN <= d.pending_window_days <= PENDING_WINDOW_MAX:
        raise ConfigurationError(
            f"pending window must be {PENDING_WINDOW_MIN}-{PENDING_WINDOW_MAX} days",
            field="pending_window_days",
        )
