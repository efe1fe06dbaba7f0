"""
licensekey_core.builder
-----------------------
KeyDescriptorBuilder turns a KeyConfig into exactly one KeyDescriptor and
one ExportedOutput referencing the key's ARN.

The build is a pure transform: no I/O, no clock, no randomness. Building the
same configuration twice yields descriptors with identical canonical bytes,
which is what lets a provisioning engine diff against applied state.
Everything is validated before the scope is touched, so a failed build
leaves nothing registered.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Set

from .config import KeyConfig
from .descriptor import (
    AttributeRef,
    ExportedOutput,
    KeyDescriptor,
    validate_descriptor,
    validate_export_name,
)
from .errors import ConfigurationError
from .logger import get_logger
from .template import cfn_id

log = get_logger("LicenseKey.Builder")

DEFAULT_SCOPE = "LicenseKeyStack"


@dataclass
class Scope:
    """
    Provisioning scope handle (one stack). Export names are unique within it,
    and so are ids once rendered as CloudFormation logical ids, so
    "license-key" and "license_key" collide.
    """
    name: str = DEFAULT_SCOPE
    exports: Set[str] = field(default_factory=set)
    logical_ids: Set[str] = field(default_factory=set)

    def check_export(self, export_name: str) -> None:
        if export_name in self.exports:
            raise ConfigurationError(
                f"export {export_name!r} already declared in scope {self.name!r}", field="export_name"
            )

    def check_logical_id(self, logical_id: str) -> None:
        rendered = cfn_id(logical_id)
        if not rendered:
            raise ConfigurationError(
                f"id {logical_id!r} has no alphanumeric characters", field="logical_id"
            )
        if rendered in self.logical_ids:
            raise ConfigurationError(
                f"id {logical_id!r} already declared in scope {self.name!r}", field="logical_id"
            )

    def register_export(self, export_name: str) -> None:
        self.check_export(export_name)
        self.exports.add(export_name)

    def register_logical_id(self, logical_id: str) -> None:
        self.check_logical_id(logical_id)
        self.logical_ids.add(cfn_id(logical_id))


@dataclass(frozen=True)
class BuildResult:
    descriptor: KeyDescriptor
    output: ExportedOutput


def descriptor_from_config(config: KeyConfig) -> KeyDescriptor:
    return KeyDescriptor(
        logical_id=config.logical_id,
        description=config.description,
        key_usage=config.key_usage,
        key_spec=config.key_spec,
        rotation_enabled=config.rotation_enabled,
        enabled=config.enabled,
        tags=config.tags,
        policy=config.policy,
        pending_window_days=config.pending_window_days,
    )


class KeyDescriptorBuilder:
    def __init__(self, scope: Optional[Scope] = None):
        self.scope = scope or Scope()

    def build(self, config: KeyConfig) -> BuildResult:
        descriptor = descriptor_from_config(config)
        validate_descriptor(descriptor)
        validate_export_name(config.export_name)

        output_id = f"{config.logical_id}-arn"
        self.scope.check_logical_id(descriptor.logical_id)
        self.scope.check_logical_id(output_id)
        self.scope.check_export(config.export_name)

        output = ExportedOutput(
            logical_id=output_id,
            export_name=config.export_name,
            value=AttributeRef(descriptor.logical_id, "Arn"),
            description=f"ARN of {descriptor.logical_id}",
        )

        self.scope.register_logical_id(descriptor.logical_id)
        self.scope.register_logical_id(output_id)
        self.scope.register_export(config.export_name)

        log.debug(f"[BUILD] {descriptor.logical_id} fingerprint={descriptor.fingerprint()}")
        log.info(f"[BUILD] {self.scope.name}/{descriptor.logical_id} → export {config.export_name}")
        return BuildResult(descriptor=descriptor, output=output)


def build_license_key(scope: Optional[Scope] = None) -> BuildResult:
    return KeyDescriptorBuilder(scope).build(KeyConfig.license_key())
