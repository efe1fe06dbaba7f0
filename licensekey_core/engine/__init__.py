# licensekey_core/engine/__init__.py
import os
from licensekey_core.engine.engine_base import ApplyResult, ProvisioningEngine, apply_descriptor
from licensekey_core.engine.engine_memory import InMemoryEngine


def engine_factory(name: str = None, stack_name: str = None):
    """
    stack_name falls back to LICENSEKEY_STACK_NAME.

    name (or LICENSEKEY_ENGINE):
      - "memory"         → local state store, real ECDSA keys (default)
      - "cdk"            → synthesise an AWS CDK stack
      - "cloudformation" → create/update a CloudFormation stack via boto3
    """
    mode = (name or os.getenv("LICENSEKEY_ENGINE", "memory")).lower()
    stack_name = stack_name or os.getenv("LICENSEKEY_STACK_NAME", "LicenseKeyStack")

    if mode == "cdk":
        # aws_cdk starts a jsii runtime on import; only pay for it when asked
        from licensekey_core.engine.engine_cdk import CdkEngine
        return CdkEngine(stack_name=stack_name)

    if mode == "cloudformation":
        from licensekey_core.engine.engine_cloudformation import CloudFormationEngine
        return CloudFormationEngine(stack_name=stack_name, region=os.getenv("AWS_REGION"))

    if mode == "memory":
        return InMemoryEngine(
            account=os.getenv("LICENSEKEY_ACCOUNT", "123456789012"),
            region=os.getenv("AWS_REGION", "us-east-1"),
        )

    raise ValueError(f"Unknown provisioning engine: {mode}")


__all__ = [
    "ApplyResult",
    "InMemoryEngine",
    "ProvisioningEngine",
    "apply_descriptor",
    "engine_factory",
]
