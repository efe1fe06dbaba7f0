import json
from licensekey_core.builder import Scope, build_license_key
from licensekey_core.template import cfn_id, render_template, template_json


def test_cfn_id():
    assert cfn_id("license-key") == "LicenseKey"
    assert cfn_id("license-key-arn") == "LicenseKeyArn"


def test_license_key_template():
    tpl = render_template(build_license_key())

    key = tpl["Resources"]["LicenseKey"]
    assert key["Type"] == "AWS::KMS::Key"
    props = key["Properties"]
    assert props["Description"] == "Key to sign licenses with"
    assert props["KeyUsage"] == "SIGN_VERIFY"
    assert props["KeySpec"] == "ECC_NIST_P384"
    assert props["EnableKeyRotation"] is False
    assert props["Enabled"] is True
    assert props["Tags"] == [
        {"Key": "keytype", "Value": "ECC384"},
        {"Key": "masterkey", "Value": "true"},
    ]
    assert props["KeyPolicy"]["Statement"][0]["Action"] == "kms:*"

    out = tpl["Outputs"]["LicenseKeyArn"]
    assert out["Value"] == {"Fn::GetAtt": ["LicenseKey", "Arn"]}
    assert out["Export"] == {"Name": "license-key"}


def test_template_json_is_byte_identical():
    a = template_json(build_license_key(Scope()))
    b = template_json(build_license_key(Scope()))
    assert a == b
    assert json.loads(a)["AWSTemplateFormatVersion"] == "2010-09-09"
