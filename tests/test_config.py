import json
import pytest
from licensekey_core.config import KeyConfig, load_config
from licensekey_core.constants import KeySpec, KeyUsage
from licensekey_core.descriptor import Tag
from licensekey_core.errors import ConfigurationError


def test_default_is_license_key(monkeypatch):
    monkeypatch.delenv("LICENSEKEY_CONFIG", raising=False)
    assert load_config() == KeyConfig.license_key()


def test_from_dict_overrides():
    cfg = KeyConfig.from_dict({
        "description": "other",
        "key_spec": "ECC_NIST_P256",
        "tags": [["env", "prod"], {"key": "team", "value": "licensing"}],
        "policy": [{"principals": ["account-root"], "actions": ["kms:*"], "resources": ["*"]}],
    })
    assert cfg.description == "other"
    assert cfg.key_spec is KeySpec.ECC_NIST_P256
    assert cfg.key_usage is KeyUsage.SIGN_VERIFY
    assert cfg.tags == (Tag("env", "prod"), Tag("team", "licensing"))
    assert cfg.export_name == "license-key"


def test_duplicate_tags_are_kept_for_validation():
    cfg = KeyConfig.from_dict({"tags": [["keytype", "ECC384"], ["keytype", "x"]]})
    assert len(cfg.tags) == 2


def test_unknown_field_and_enum():
    with pytest.raises(ConfigurationError, match="unknown configuration fields"):
        KeyConfig.from_dict({"alias": "x"})
    with pytest.raises(ConfigurationError) as ei:
        KeyConfig.from_dict({"key_spec": "ECC_NIST_P999"})
    assert ei.value.field == "key_spec"


def test_boolean_fields_must_be_booleans():
    with pytest.raises(ConfigurationError):
        KeyConfig.from_dict({"rotation_enabled": "false"})


def test_load_from_env_file(tmp_path, monkeypatch):
    path = tmp_path / "key.json"
    path.write_text(json.dumps({"description": "from file", "export_name": "lic-key"}))
    monkeypatch.setenv("LICENSEKEY_CONFIG", str(path))
    cfg = load_config()
    assert cfg.description == "from file"
    assert cfg.export_name == "lic-key"


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="cannot read"):
        load_config(str(tmp_path / "missing.json"))


def test_config_dict_roundtrip():
    cfg = KeyConfig.license_key()
    assert KeyConfig.from_dict(cfg.to_dict()) == cfg


def test_policy_string_fields_rejected():
    with pytest.raises(ConfigurationError) as ei:
        KeyConfig.from_dict({"policy": [{"principals": "account-root", "actions": "kms:*"}]})
    assert ei.value.field == "policy"


def test_malformed_tags_rejected():
    with pytest.raises(ConfigurationError) as ei:
        KeyConfig.from_dict({"tags": [{"value": "x"}]})
    assert ei.value.field == "tags"
    with pytest.raises(ConfigurationError) as ei:
        KeyConfig.from_dict({"tags": 5})
    assert ei.value.field == "tags"
