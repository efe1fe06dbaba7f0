#!/usr/bin/env python3
# CDK entry point, wired up in cdk.json: `cdk synth` / `cdk deploy`
import os

import aws_cdk as cdk

from licensekey_core.builder import KeyDescriptorBuilder, Scope
from licensekey_core.config import load_config
from licensekey_core.engine.engine_cdk import LicenseKeyStack


def main():
    stack_name = os.getenv("LICENSEKEY_STACK_NAME", "LicenseKeyStack")
    result = KeyDescriptorBuilder(Scope(stack_name)).build(load_config())

    app = cdk.App()
    LicenseKeyStack(app, stack_name, [result])
    app.synth()


if __name__ == "__main__":
    main()
