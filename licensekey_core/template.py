# licensekey_core/template.py

from __future__ import annotations
import re
from typing import Any, Dict, Optional

from .constants import CFN_KEY_TYPE, CFN_TEMPLATE_VERSION
from .descriptor import ExportedOutput, KeyDescriptor
from .policy import to_policy_document
from .utils import canonical_json


def cfn_id(construct_id: str) -> str:
    """'license-key' -> 'LicenseKey'; CloudFormation logical ids are alphanumeric."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", construct_id) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def key_properties(d: KeyDescriptor) -> Dict[str, Any]:
    return {
        "Description": d.description,
        "KeyUsage": d.key_usage.value,
        "KeySpec": d.key_spec.value,
        "EnableKeyRotation": d.rotation_enabled,
        "Enabled": d.enabled,
        "PendingWindowInDays": d.pending_window_days,
        "KeyPolicy": to_policy_document(d.policy),
        "Tags": [{"Key": t.key, "Value": t.value} for t in d.tags],
    }


def output_block(o: ExportedOutput) -> Dict[str, Any]:
    return {
        "Description": o.description,
        "Value": {"Fn::GetAtt": [cfn_id(o.value.logical_id), o.value.attribute]},
        "Export": {"Name": o.export_name},
    }


def render_template(*results, description: Optional[str] = None) -> Dict[str, Any]:
    """Render one or more BuildResults into a single CloudFormation template."""
    template: Dict[str, Any] = {"AWSTemplateFormatVersion": CFN_TEMPLATE_VERSION}
    if description:
        template["Description"] = description
    resources: Dict[str, Any] = {}
    outputs: Dict[str, Any] = {}
    for r in results:
        resources[cfn_id(r.descriptor.logical_id)] = {
            "Type": CFN_KEY_TYPE,
            "Properties": key_properties(r.descriptor),
        }
        outputs[cfn_id(r.output.logical_id)] = output_block(r.output)
    template["Resources"] = resources
    template["Outputs"] = outputs
    return template


def template_json(*results, description: Optional[str] = None) -> str:
    return canonical_json(render_template(*results, description=description)).decode("utf-8")
