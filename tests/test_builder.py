import dataclasses
import logging
import pytest
from licensekey_core.builder import KeyDescriptorBuilder, Scope, build_license_key
from licensekey_core.config import KeyConfig
from licensekey_core.constants import KeySpec, KeyUsage
from licensekey_core.descriptor import AttributeRef, Tag
from licensekey_core.errors import ConfigurationError
from licensekey_core.policy import PolicyStatement


def _cfg(**changes):
    return dataclasses.replace(KeyConfig.license_key(), **changes)


def test_license_key_scenario():
    res = build_license_key()
    d, o = res.descriptor, res.output

    assert d.description == "Key to sign licenses with"
    assert d.key_usage is KeyUsage.SIGN_VERIFY
    assert d.key_spec is KeySpec.ECC_NIST_P384
    assert d.rotation_enabled is False
    assert d.enabled is True
    assert d.tag_map() == {"keytype": "ECC384", "masterkey": "true"}
    assert d.policy == (PolicyStatement(("account-root",), ("kms:*",), ("*",)),)

    assert o.export_name == "license-key"
    assert o.value == AttributeRef("license-key", "Arn")


def test_build_is_deterministic():
    a = build_license_key(Scope())
    b = build_license_key(Scope())
    assert a == b
    assert a.descriptor.to_canonical_bytes() == b.descriptor.to_canonical_bytes()
    assert a.descriptor.fingerprint() == b.descriptor.fingerprint()


def test_tag_order_does_not_change_descriptor():
    a = KeyDescriptorBuilder().build(_cfg(tags=(Tag("masterkey", "true"), Tag("keytype", "ECC384"))))
    b = build_license_key()
    assert a.descriptor.to_canonical_bytes() == b.descriptor.to_canonical_bytes()


def test_rotation_rejected_for_signing_key():
    with pytest.raises(ConfigurationError) as ei:
        KeyDescriptorBuilder().build(_cfg(rotation_enabled=True))
    assert ei.value.field == "rotation_enabled"


def test_rotation_allowed_for_symmetric_key():
    res = KeyDescriptorBuilder().build(_cfg(
        key_spec=KeySpec.SYMMETRIC_DEFAULT,
        key_usage=KeyUsage.ENCRYPT_DECRYPT,
        rotation_enabled=True,
    ))
    assert res.descriptor.rotation_enabled


def test_ecc_cannot_encrypt():
    with pytest.raises(ConfigurationError, match="cannot be used for ENCRYPT_DECRYPT"):
        KeyDescriptorBuilder().build(_cfg(key_usage=KeyUsage.ENCRYPT_DECRYPT))


def test_rsa_supports_both_usages():
    for usage in KeyUsage:
        KeyDescriptorBuilder().build(_cfg(key_spec=KeySpec.RSA_3072, key_usage=usage))


def test_empty_policy_rejected():
    with pytest.raises(ConfigurationError, match="no statements"):
        KeyDescriptorBuilder().build(_cfg(policy=()))


def test_statement_without_principals_or_actions_rejected():
    with pytest.raises(ConfigurationError, match="no principals"):
        KeyDescriptorBuilder().build(_cfg(policy=(PolicyStatement((), ("kms:*",)),)))
    with pytest.raises(ConfigurationError, match="empty action set"):
        KeyDescriptorBuilder().build(_cfg(policy=(PolicyStatement(("account-root",), ()),)))


def test_policy_without_admin_rejected():
    usage_only = PolicyStatement(("account-root",), ("kms:Sign", "kms:Verify", "kms:GetPublicKey"))
    with pytest.raises(ConfigurationError, match="unmanageable"):
        KeyDescriptorBuilder().build(_cfg(policy=(usage_only,)))


def test_deny_put_key_policy_removes_admin():
    deny = PolicyStatement(("account-root",), ("kms:PutKeyPolicy",), effect="Deny")
    with pytest.raises(ConfigurationError, match="unmanageable"):
        KeyDescriptorBuilder().build(_cfg(policy=(PolicyStatement(("account-root",), ("kms:*",)), deny)))


def test_duplicate_tag_key_rejected_and_nothing_emitted():
    scope = Scope()
    tags = (Tag("keytype", "ECC384"), Tag("masterkey", "true"), Tag("keytype", "P384"))
    with pytest.raises(ConfigurationError, match="duplicate tag key 'keytype'"):
        KeyDescriptorBuilder(scope).build(_cfg(tags=tags))
    assert scope.exports == set()
    assert scope.logical_ids == set()


def test_reserved_tag_prefix_rejected():
    with pytest.raises(ConfigurationError, match="reserved"):
        KeyDescriptorBuilder().build(_cfg(tags=(Tag("aws:owner", "x"),)))


def test_duplicate_export_name_in_scope():
    scope = Scope("Stack")
    KeyDescriptorBuilder(scope).build(KeyConfig.license_key())
    with pytest.raises(ConfigurationError, match="already declared"):
        KeyDescriptorBuilder(scope).build(_cfg(logical_id="second-key"))
    # a different export name in the same scope is fine
    KeyDescriptorBuilder(scope).build(_cfg(logical_id="second-key", export_name="second-key"))
    assert scope.exports == {"license-key", "second-key"}


def test_malformed_export_name():
    with pytest.raises(ConfigurationError) as ei:
        KeyDescriptorBuilder().build(_cfg(export_name="license key!"))
    assert ei.value.field == "export_name"


def test_pending_window_range():
    with pytest.raises(ConfigurationError):
        KeyDescriptorBuilder().build(_cfg(pending_window_days=3))


def test_build_logs_export(caplog):
    with caplog.at_level(logging.INFO, logger="LicenseKey.Builder"):
        build_license_key()
    assert "export license-key" in caplog.text


def test_ids_colliding_after_rendering_rejected():
    scope = Scope()
    KeyDescriptorBuilder(scope).build(KeyConfig.license_key())
    with pytest.raises(ConfigurationError) as ei:
        KeyDescriptorBuilder(scope).build(_cfg(logical_id="license_key", export_name="other-key"))
    assert ei.value.field == "logical_id"
    assert scope.logical_ids == {"LicenseKey", "LicenseKeyArn"}


def test_id_without_alphanumerics_rejected():
    scope = Scope()
    with pytest.raises(ConfigurationError, match="no alphanumeric"):
        KeyDescriptorBuilder(scope).build(_cfg(logical_id="-"))
    assert scope.logical_ids == set()


def test_export_name_with_trailing_newline_rejected():
    with pytest.raises(ConfigurationError) as ei:
        KeyDescriptorBuilder().build(_cfg(export_name="license-key\n"))
    assert ei.value.field == "export_name"
