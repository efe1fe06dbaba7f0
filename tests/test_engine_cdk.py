import shutil
import pytest

# CMD Line Usage: pytest -v tests/test_engine_cdk.py  (needs aws-cdk-lib and a Node.js runtime)

if shutil.which("node") is None:
    pytest.skip("aws-cdk-lib needs a Node.js runtime", allow_module_level=True)

cdk = pytest.importorskip("aws_cdk")
from aws_cdk.assertions import Template

from licensekey_core.builder import build_license_key
from licensekey_core.engine.engine_cdk import CdkEngine, LicenseKeyStack

ROOT_PRINCIPAL = {"Fn::Join": ["", [
    "arn:", {"Ref": "AWS::Partition"}, ":iam::", {"Ref": "AWS::AccountId"}, ":root",
]]}


def _template():
    app = cdk.App()
    stack = LicenseKeyStack(app, "LicenseKeyStack", [build_license_key()])
    return Template.from_stack(stack)


def test_stack_declares_signing_key():
    tpl = _template()
    tpl.resource_count_is("AWS::KMS::Key", 1)
    tpl.has_resource_properties("AWS::KMS::Key", {
        "Description": "Key to sign licenses with",
        "KeyUsage": "SIGN_VERIFY",
        "KeySpec": "ECC_NIST_P384",
        "EnableKeyRotation": False,
        "Enabled": True,
        "Tags": [
            {"Key": "keytype", "Value": "ECC384"},
            {"Key": "masterkey", "Value": "true"},
        ],
        "KeyPolicy": {
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"AWS": ROOT_PRINCIPAL},
                "Action": "kms:*",
                "Resource": "*",
            }],
        },
    })


def test_stack_exports_key_arn():
    _template().has_output("LicenseKeyArn", {
        "Value": {"Fn::GetAtt": ["LicenseKey", "Arn"]},
        "Export": {"Name": "license-key"},
    })


def test_engine_returns_unresolved_arn(tmp_path):
    engine = CdkEngine(outdir=str(tmp_path))
    res = engine.apply(build_license_key().descriptor, build_license_key().output)
    assert res.action == "SYNTH"
    assert res.resource_id == '{"Fn::GetAtt":["LicenseKey","Arn"]}'
    assert "LicenseKey" in engine.template["Resources"]
