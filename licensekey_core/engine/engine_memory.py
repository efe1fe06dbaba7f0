# licensekey_core/engine/engine_memory.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import uuid

from licensekey_core.constants import PENDING_WINDOW_MAX, PENDING_WINDOW_MIN, KeyUsage
from licensekey_core.crypto import (
    compute_pubkey_fingerprint,
    ecc_generate,
    ecdsa_sign,
    ecdsa_verify,
    signing_algorithm,
)
from licensekey_core.descriptor import ExportedOutput, KeyDescriptor
from licensekey_core.engine.engine_base import (
    CREATE,
    NO_CHANGE,
    REPLACE,
    UPDATE,
    ApplyResult,
    ProvisioningEngine,
)
from licensekey_core.errors import ApplyError, LimitExceededError, NamingConflictError
from licensekey_core.logger import get_logger
from licensekey_core.utils import now_ts

log = get_logger("LicenseKey.Engine.Memory")

ENABLED = "Enabled"
DISABLED = "Disabled"
PENDING_DELETION = "PendingDeletion"


@dataclass
class KeyState:
    arn: str
    key_id: str
    descriptor: KeyDescriptor
    created_at: str
    state: str = ENABLED
    private_der: Optional[bytes] = None
    public_der: Optional[bytes] = None
    pending_days: Optional[int] = None


class InMemoryEngine(ProvisioningEngine):
    """
    Local stand-in for the provisioning engine.

    Keeps its own resource state store, diffs submitted descriptors by
    fingerprint, and materialises real ECDSA key pairs for SIGN_VERIFY keys
    so signing can be exercised end to end without a cloud account.
    """

    name = "memory"

    def __init__(self, account: str = "123456789012", region: str = "us-east-1",
                 max_keys: Optional[int] = None):
        self.account = account
        self.region = region
        self.max_keys = max_keys
        self.keys: Dict[str, KeyState] = {}
        self.stack: Dict[str, str] = {}                      # logical_id -> arn
        self.exports: Dict[str, Tuple[str, str]] = {}        # export -> (logical_id, arn)

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------
    def apply(self, descriptor: KeyDescriptor, output: ExportedOutput) -> ApplyResult:
        if output.value.logical_id != descriptor.logical_id:
            raise ApplyError("ValidationError", f"unresolved reference {output.value.logical_id}")

        owner = self.exports.get(output.export_name)
        if owner and owner[0] != descriptor.logical_id:
            raise NamingConflictError(
                "AlreadyExistsException", f"export {output.export_name} is already exported by {owner[0]}"
            )

        current_arn = self.stack.get(descriptor.logical_id)
        if current_arn and self.keys[current_arn].state == PENDING_DELETION:
            # a key scheduled for deletion is gone as far as the stack is concerned
            current_arn = None
        if current_arn is None:
            rec = self._create(descriptor)
            action = CREATE
        else:
            current = self.keys[current_arn]
            if current.descriptor.fingerprint() == descriptor.fingerprint():
                rec, action = current, NO_CHANGE
            elif (current.descriptor.key_spec != descriptor.key_spec
                  or current.descriptor.key_usage != descriptor.key_usage):
                # key spec and usage are immutable: provision a new key
                rec = self._create(descriptor)
                self._schedule(current, descriptor.pending_window_days)
                action = REPLACE
            else:
                current.descriptor = descriptor
                current.state = ENABLED if descriptor.enabled else DISABLED
                rec, action = current, UPDATE

        self.stack[descriptor.logical_id] = rec.arn
        for name, (lid, _) in list(self.exports.items()):
            if lid == descriptor.logical_id and name != output.export_name:
                del self.exports[name]
        self.exports[output.export_name] = (descriptor.logical_id, rec.arn)

        log.info(f"[MEMORY] {action} {descriptor.logical_id} → {rec.arn}")
        return ApplyResult(
            resource_id=rec.arn,
            export_name=output.export_name,
            action=action,
            outputs={output.export_name: rec.arn},
        )

    def _create(self, d: KeyDescriptor) -> KeyState:
        live = sum(1 for k in self.keys.values() if k.state != PENDING_DELETION)
        if self.max_keys is not None and live >= self.max_keys:
            raise LimitExceededError("LimitExceededException", f"key quota of {self.max_keys} reached")

        key_id = str(uuid.uuid4())
        rec = KeyState(
            arn=f"arn:aws:kms:{self.region}:{self.account}:key/{key_id}",
            key_id=key_id,
            descriptor=d,
            created_at=now_ts(),
            state=ENABLED if d.enabled else DISABLED,
        )
        if d.key_usage == KeyUsage.SIGN_VERIFY and d.key_spec.is_ecc:
            rec.private_der, rec.public_der = ecc_generate(d.key_spec)
        self.keys[rec.arn] = rec
        return rec

    @staticmethod
    def _schedule(rec: KeyState, pending_days: int) -> None:
        rec.state = PENDING_DELETION
        rec.pending_days = max(PENDING_WINDOW_MIN, min(PENDING_WINDOW_MAX, pending_days))

    # ------------------------------------------------------------------
    # Key operations
    # ------------------------------------------------------------------
    def _lookup(self, key_id: str) -> KeyState:
        rec = self.keys.get(key_id)
        if rec is None:
            rec = next((k for k in self.keys.values() if k.key_id == key_id), None)
        if rec is None:
            raise ApplyError("NotFoundException", f"key {key_id} does not exist")
        return rec

    def _usable_for_signing(self, key_id: str) -> KeyState:
        rec = self._lookup(key_id)
        if rec.state == PENDING_DELETION:
            raise ApplyError("KMSInvalidStateException", f"{rec.arn} is pending deletion")
        if rec.state == DISABLED:
            raise ApplyError("DisabledException", f"{rec.arn} is disabled")
        if rec.descriptor.key_usage != KeyUsage.SIGN_VERIFY:
            raise ApplyError("InvalidKeyUsageException", f"{rec.arn} is not a signing key")
        if rec.private_der is None:
            raise ApplyError("UnsupportedOperationException", f"no local key material for {rec.arn}")
        return rec

    def sign(self, key_id: str, message: bytes) -> bytes:
        rec = self._usable_for_signing(key_id)
        return ecdsa_sign(rec.private_der, message, rec.descriptor.key_spec)

    def verify(self, key_id: str, message: bytes, signature: bytes) -> bool:
        rec = self._usable_for_signing(key_id)
        return ecdsa_verify(rec.public_der, signature, message, rec.descriptor.key_spec)

    def get_public_key(self, key_id: str) -> bytes:
        rec = self._lookup(key_id)
        if rec.public_der is None:
            raise ApplyError("UnsupportedOperationException", f"{rec.arn} has no public key")
        return rec.public_der

    def schedule_key_deletion(self, key_id: str, pending_days: int) -> dict:
        rec = self._lookup(key_id)
        self._schedule(rec, pending_days)
        return {"KeyId": rec.arn, "KeyState": rec.state, "PendingWindowInDays": rec.pending_days}

    def describe(self, key_id: str) -> dict:
        rec = self._lookup(key_id)
        d = rec.descriptor
        meta = {
            "Arn": rec.arn,
            "KeyId": rec.key_id,
            "Description": d.description,
            "KeyUsage": d.key_usage.value,
            "KeySpec": d.key_spec.value,
            "Enabled": rec.state == ENABLED,
            "KeyState": rec.state,
            "CreationDate": rec.created_at,
            "Tags": d.tag_map(),
        }
        if rec.private_der is not None:
            meta["SigningAlgorithms"] = [signing_algorithm(d.key_spec)]
            meta["PublicKeyFingerprint"] = compute_pubkey_fingerprint(rec.public_der)
        return meta

    def import_value(self, export_name: str) -> str:
        """Cross-stack lookup of an exported value."""
        try:
            return self.exports[export_name][1]
        except KeyError:
            raise ApplyError("ValidationError", f"no export named {export_name}") from None
