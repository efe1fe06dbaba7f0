# licensekey_core/constants.py

from __future__ import annotations
from enum import Enum
from typing import Dict, FrozenSet


class KeyUsage(str, Enum):
    SIGN_VERIFY = "SIGN_VERIFY"
    ENCRYPT_DECRYPT = "ENCRYPT_DECRYPT"


class KeySpec(str, Enum):
    SYMMETRIC_DEFAULT = "SYMMETRIC_DEFAULT"
    RSA_2048 = "RSA_2048"
    RSA_3072 = "RSA_3072"
    RSA_4096 = "RSA_4096"
    ECC_NIST_P256 = "ECC_NIST_P256"
    ECC_NIST_P384 = "ECC_NIST_P384"
    ECC_NIST_P521 = "ECC_NIST_P521"
    ECC_SECG_P256K1 = "ECC_SECG_P256K1"

    @property
    def is_asymmetric(self) -> bool:
        return self is not KeySpec.SYMMETRIC_DEFAULT

    @property
    def is_ecc(self) -> bool:
        return self.value.startswith("ECC_")


_BOTH = frozenset({KeyUsage.SIGN_VERIFY, KeyUsage.ENCRYPT_DECRYPT})
_SIGN = frozenset({KeyUsage.SIGN_VERIFY})

# Which usages the platform accepts for each key spec
SUPPORTED_USAGES: Dict[KeySpec, FrozenSet[KeyUsage]] = {
    KeySpec.SYMMETRIC_DEFAULT: frozenset({KeyUsage.ENCRYPT_DECRYPT}),
    KeySpec.RSA_2048: _BOTH,
    KeySpec.RSA_3072: _BOTH,
    KeySpec.RSA_4096: _BOTH,
    KeySpec.ECC_NIST_P256: _SIGN,
    KeySpec.ECC_NIST_P384: _SIGN,
    KeySpec.ECC_NIST_P521: _SIGN,
    KeySpec.ECC_SECG_P256K1: _SIGN,
}

# --------- Policy ----------
ACCOUNT_ROOT = "account-root"
SERVICE_PRINCIPAL_PREFIX = "service:"
ALL_KMS_ACTIONS = "kms:*"
WILDCARD = "*"
POLICY_VERSION = "2012-10-17"

# Holding all of these keeps a key manageable after creation
KEY_ADMIN_ACTIONS = (
    "kms:DescribeKey",
    "kms:EnableKey",
    "kms:DisableKey",
    "kms:PutKeyPolicy",
    "kms:ScheduleKeyDeletion",
    "kms:CancelKeyDeletion",
)

# --------- License key defaults ----------
LICENSE_KEY_ID = "license-key"
LICENSE_KEY_DESCRIPTION = "Key to sign licenses with"
LICENSE_KEY_EXPORT = "license-key"
LICENSE_KEY_TAGS = (("keytype", "ECC384"), ("masterkey", "true"))

# --------- Platform limits ----------
TAG_KEY_MAX = 128
TAG_VALUE_MAX = 256
RESERVED_TAG_PREFIX = "aws:"
EXPORT_NAME_PATTERN = r"^[A-Za-z0-9:-]{1,255}$"
PENDING_WINDOW_MIN = 7
PENDING_WINDOW_MAX = 30
DEFAULT_PENDING_WINDOW = 30

CFN_KEY_TYPE = "AWS::KMS::Key"
CFN_TEMPLATE_VERSION = "2010-09-09"
