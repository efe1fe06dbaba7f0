from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

from licensekey_core.descriptor import (
    ExportedOutput,
    KeyDescriptor,
    validate_descriptor,
    validate_export_name,
)
from licensekey_core.errors import ConfigurationError
from licensekey_core.logger import get_logger

log = get_logger("LicenseKey.Engine")

CREATE = "CREATE"
UPDATE = "UPDATE"
REPLACE = "REPLACE"
NO_CHANGE = "NO_CHANGE"
SYNTH = "SYNTH"


@dataclass
class ApplyResult:
    resource_id: str
    export_name: str
    action: str
    outputs: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "resource_id": self.resource_id,
            "export_name": self.export_name,
            "action": self.action,
            "outputs": dict(self.outputs),
        }


class ProvisioningEngine:
    """
    Provisioning Engine contract.

    apply() receives one descriptor and its export and either returns an
    ApplyResult or raises ApplyError. There is no partial success: the key
    and its export both exist afterwards, or neither does.
    """
    name: str = "base"

    def apply(self, descriptor: KeyDescriptor, output: ExportedOutput) -> ApplyResult:
        raise NotImplementedError


def apply_descriptor(engine: ProvisioningEngine, result) -> ApplyResult:
    """
    Re-validate a BuildResult locally, then hand it to the engine.

    ConfigurationError is raised before the engine is called. ApplyError from
    the engine propagates unchanged; there is no retry here.
    """
    d, o = result.descriptor, result.output
    validate_descriptor(d)
    validate_export_name(o.export_name)
    if o.value.logical_id != d.logical_id:
        raise ConfigurationError(
            f"export {o.export_name!r} references {o.value.logical_id!r}, not {d.logical_id!r}",
            field="export_name",
        )

    log.info(f"[APPLY] {engine.name} ← {d.logical_id} ({d.key_spec.value}/{d.key_usage.value})")
    res = engine.apply(d, o)
    log.info(f"[APPLY] {engine.name} {res.action} {res.resource_id}")
    return res
