# licensekey_core/engine/engine_cloudformation.py
from __future__ import annotations
from typing import Dict, Optional

import boto3
from botocore.exceptions import ClientError, WaiterError

from licensekey_core.builder import BuildResult
from licensekey_core.descriptor import ExportedOutput, KeyDescriptor
from licensekey_core.engine.engine_base import (
    CREATE,
    NO_CHANGE,
    UPDATE,
    ApplyResult,
    ProvisioningEngine,
)
from licensekey_core.errors import ApplyError, apply_error_for
from licensekey_core.logger import get_logger
from licensekey_core.template import cfn_id, template_json

log = get_logger("LicenseKey.Engine.CloudFormation")

_NO_UPDATES = "No updates are to be performed"
_MISSING = "does not exist"


class CloudFormationEngine(ProvisioningEngine):
    """
    Applies the rendered template as a CloudFormation stack.

    Errors are surfaced verbatim as ApplyError subclasses; retries and
    rollback are CloudFormation's job.
    """

    name = "cloudformation"

    def __init__(self, stack_name: str = "LicenseKeyStack", client=None, region: Optional[str] = None):
        self.stack_name = stack_name
        self.client = client or boto3.client("cloudformation", region_name=region)

    def apply(self, descriptor: KeyDescriptor, output: ExportedOutput) -> ApplyResult:
        body = template_json(BuildResult(descriptor, output))
        exists = self._stack_exists()

        try:
            if exists:
                self.client.update_stack(StackName=self.stack_name, TemplateBody=body)
                action, waiter = UPDATE, "stack_update_complete"
            else:
                self.client.create_stack(StackName=self.stack_name, TemplateBody=body)
                action, waiter = CREATE, "stack_create_complete"
        except ClientError as e:
            err = e.response.get("Error", {})
            if _NO_UPDATES in err.get("Message", ""):
                action, waiter = NO_CHANGE, None
            else:
                raise apply_error_for(err.get("Code", "ClientError"), err.get("Message", "")) from e

        if waiter:
            log.info(f"[CFN] {action} {self.stack_name}, waiting for {waiter}")
            try:
                self.client.get_waiter(waiter).wait(StackName=self.stack_name)
            except WaiterError as e:
                raise ApplyError("StackApplyFailed", f"{self.stack_name}: {e}") from e

        outputs = self._outputs()
        key = cfn_id(output.logical_id)
        if key not in outputs:
            raise ApplyError("ValidationError", f"stack {self.stack_name} has no output {key}")
        arn = outputs[key]
        return ApplyResult(
            resource_id=arn,
            export_name=output.export_name,
            action=action,
            outputs={output.export_name: arn},
        )

    def _describe(self) -> dict:
        try:
            return self.client.describe_stacks(StackName=self.stack_name)["Stacks"][0]
        except ClientError as e:
            err = e.response.get("Error", {})
            raise apply_error_for(err.get("Code", "ClientError"), err.get("Message", "")) from e

    def _stack_exists(self) -> bool:
        try:
            self._describe()
        except ApplyError as e:
            if _MISSING in e.message:
                return False
            raise
        return True

    def _outputs(self) -> Dict[str, str]:
        stack = self._describe()
        return {o["OutputKey"]: o["OutputValue"] for o in stack.get("Outputs", [])}
