# licensekey_core/engine/engine_cdk.py
from __future__ import annotations
from typing import Iterable, Optional
import json

import aws_cdk as cdk
from aws_cdk import aws_kms as kms
from constructs import Construct

from licensekey_core.builder import BuildResult
from licensekey_core.descriptor import ExportedOutput, KeyDescriptor
from licensekey_core.engine.engine_base import SYNTH, ApplyResult, ProvisioningEngine
from licensekey_core.logger import get_logger
from licensekey_core.policy import to_policy_document
from licensekey_core.template import cfn_id

log = get_logger("LicenseKey.Engine.CDK")


class LicenseKeyStack(cdk.Stack):
    """Stack holding the signing key(s) and the ARN export(s) built from BuildResults."""

    def __init__(self, scope: Construct, id: str, results: Iterable, **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.keys = {}
        for r in results:
            d, o = r.descriptor, r.output

            key = kms.CfnKey(
                self,
                d.logical_id,
                description=d.description,
                key_policy=to_policy_document(d.policy),
                enable_key_rotation=d.rotation_enabled,
                key_usage=d.key_usage.value,
                key_spec=d.key_spec.value,
                enabled=d.enabled,
                pending_window_in_days=d.pending_window_days,
                tags=[cdk.CfnTag(key=t.key, value=t.value) for t in d.tags],
            )
            key.override_logical_id(cfn_id(d.logical_id))
            self.keys[d.logical_id] = key

            out = cdk.CfnOutput(
                self,
                o.logical_id,
                value=self.keys[o.value.logical_id].attr_arn,
                description=o.description,
                export_name=o.export_name,
            )
            out.override_logical_id(cfn_id(o.logical_id))


class CdkEngine(ProvisioningEngine):
    """
    Synthesises the descriptor into a CDK stack.

    Deployment itself is left to `cdk deploy`; the resource id returned is the
    unresolved ARN reference from the synthesised template.
    """

    name = "cdk"

    def __init__(self, stack_name: str = "LicenseKeyStack", outdir: Optional[str] = None):
        self.stack_name = stack_name
        self.outdir = outdir
        self.template: Optional[dict] = None

    def apply(self, descriptor: KeyDescriptor, output: ExportedOutput) -> ApplyResult:
        app = cdk.App(outdir=self.outdir) if self.outdir else cdk.App()
        LicenseKeyStack(app, self.stack_name, [BuildResult(descriptor, output)])
        assembly = app.synth()
        self.template = assembly.get_stack_by_name(self.stack_name).template

        ref = self.template["Outputs"][cfn_id(output.logical_id)]["Value"]
        resource_id = json.dumps(ref, sort_keys=True, separators=(",", ":"))
        log.info(f"[CDK] synthesised {self.stack_name} → {resource_id}")
        return ApplyResult(
            resource_id=resource_id,
            export_name=output.export_name,
            action=SYNTH,
            outputs={output.export_name: resource_id},
        )
