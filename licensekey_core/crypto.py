"""
licensekey_core.crypto
----------------------
Local ECDSA key material for the in-memory provisioning engine.

Key encodings follow what KMS hands out:
- private keys: PKCS#8 DER (never leaves the engine)
- public keys: SubjectPublicKeyInfo DER (GetPublicKey)
- signatures: DER-encoded ECDSA (Sign)
"""

from __future__ import annotations
from typing import Tuple
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
import hashlib
from .constants import KeySpec
from .errors import ConfigurationError

# --------- KeySpec -> curve / digest ----------
_CURVES = {
    KeySpec.ECC_NIST_P256: (ec.SECP256R1, hashes.SHA256),
    KeySpec.ECC_NIST_P384: (ec.SECP384R1, hashes.SHA384),
    KeySpec.ECC_NIST_P521: (ec.SECP521R1, hashes.SHA512),
    KeySpec.ECC_SECG_P256K1: (ec.SECP256K1, hashes.SHA256),
}


def _curve(spec: KeySpec):
    try:
        return _CURVES[spec]
    except KeyError:
        raise ConfigurationError(f"no local ECDSA support for {spec.value}", field="key_spec") from None


def signing_algorithm(spec: KeySpec) -> str:
    _, digest = _curve(spec)
    return f"ECDSA_SHA_{digest.digest_size * 8}"


# --------- ECDSA (sign/verify) ----------
def ecc_generate(spec: KeySpec) -> Tuple[bytes, bytes]:
    curve, _ = _curve(spec)
    sk = ec.generate_private_key(curve())
    priv = sk.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return priv, public_key_der(sk)


def public_key_der(sk: ec.EllipticCurvePrivateKey) -> bytes:
    return sk.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def ecdsa_sign(priv_der: bytes, data: bytes, spec: KeySpec) -> bytes:
    _, digest = _curve(spec)
    sk = serialization.load_der_private_key(priv_der, password=None)
    return sk.sign(data, ec.ECDSA(digest()))


def ecdsa_verify(pub_der: bytes, sig: bytes, data: bytes, spec: KeySpec) -> bool:
    _, digest = _curve(spec)
    pk = serialization.load_der_public_key(pub_der)
    try:
        pk.verify(sig, data, ec.ECDSA(digest()))
        return True
    except InvalidSignature:
        return False


def compute_pubkey_fingerprint(pub_der: bytes) -> str:
    """
    Stable fingerprint for a public key: hex SHA256 over the SPKI DER,
    truncated to 32 chars.
    """
    return hashlib.sha256(pub_der).hexdigest()[:32]
