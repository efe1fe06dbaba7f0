"""
licensekey_core.policy
----------------------
Key policy statements and the lockout guard.

A key whose policy grants no principal the administration actions can never
be changed or deleted again, so `validate_policy()` refuses such a policy
before it ever reaches a provisioning engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .constants import (
    ACCOUNT_ROOT,
    ALL_KMS_ACTIONS,
    KEY_ADMIN_ACTIONS,
    POLICY_VERSION,
    SERVICE_PRINCIPAL_PREFIX,
    WILDCARD,
)
from .errors import ConfigurationError

ALLOW = "Allow"
DENY = "Deny"


@dataclass(frozen=True)
class PolicyStatement:
    principals: Tuple[str, ...]
    actions: Tuple[str, ...]
    resources: Tuple[str, ...] = (WILDCARD,)
    effect: str = ALLOW
    sid: Optional[str] = None

    def __post_init__(self):
        # accept lists from callers, store tuples so the statement stays hashable
        for name in ("principals", "actions", "resources"):
            value = getattr(self, name)
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"{name} must be a list of strings, got {value!r}", field="policy")
            object.__setattr__(self, name, tuple(value))

    def allows(self, action: str, resource: str = WILDCARD) -> bool:
        """True when this statement's action and resource patterns cover the pair."""
        action_hit = any(fnmatchcase(action.lower(), a.lower()) for a in self.actions)
        resource_hit = any(fnmatchcase(resource, r) for r in self.resources)
        return action_hit and resource_hit

    def names(self, principal: str) -> bool:
        return principal in self.principals or WILDCARD in self.principals

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "principals": list(self.principals),
            "actions": list(self.actions),
            "resources": list(self.resources),
            "effect": self.effect,
        }
        if self.sid:
            d["sid"] = self.sid
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyStatement":
        return cls(
            principals=data.get("principals", []),
            actions=data.get("actions", []),
            resources=data.get("resources", [WILDCARD]),
            effect=data.get("effect", ALLOW),
            sid=data.get("sid"),
        )


def account_root_admin_statement() -> PolicyStatement:
    return PolicyStatement(
        principals=(ACCOUNT_ROOT,),
        actions=(ALL_KMS_ACTIONS,),
        resources=(WILDCARD,),
    )


def grants_key_administration(statements: Iterable[PolicyStatement]) -> Set[str]:
    """
    Return the principals that can still administer the key.

    A principal qualifies when Allow statements naming it cover every action
    in KEY_ADMIN_ACTIONS on the key itself (resource "*"), and no Deny
    statement takes kms:PutKeyPolicy away from it.
    """
    statements = list(statements)
    allows = [s for s in statements if s.effect == ALLOW]
    denies = [s for s in statements if s.effect == DENY]

    candidates = {p for s in allows for p in s.principals if p != WILDCARD}
    admins = set()
    for principal in candidates:
        mine = [s for s in allows if s.names(principal)]
        if not all(any(s.allows(a) for s in mine) for a in KEY_ADMIN_ACTIONS):
            continue
        if any(s.names(principal) and s.allows("kms:PutKeyPolicy") for s in denies):
            continue
        admins.add(principal)
    return admins


def validate_policy(statements: Sequence[PolicyStatement]) -> None:
    if not statements:
        raise ConfigurationError("key policy has no statements", field="policy")

    for i, s in enumerate(statements):
        if s.effect not in (ALLOW, DENY):
            raise ConfigurationError(f"statement {i}: unknown effect {s.effect!r}", field="policy")
        if not s.principals:
            raise ConfigurationError(f"statement {i}: no principals", field="policy")
        if not s.actions or any(not a for a in s.actions):
            raise ConfigurationError(f"statement {i}: empty action set", field="policy")
        if not s.resources:
            raise ConfigurationError(f"statement {i}: no resources", field="policy")

    if not grants_key_administration(statements):
        raise ConfigurationError(
            "key policy grants no principal key administration; the key would be unmanageable",
            field="policy",
        )


# --------- CloudFormation rendering ----------
def _principal_block(principals: Sequence[str]) -> Any:
    if list(principals) == [WILDCARD]:
        return WILDCARD

    block: Dict[str, List[Any]] = {}
    for p in principals:
        if p == ACCOUNT_ROOT:
            block.setdefault("AWS", []).append({
                "Fn::Join": ["", [
                    "arn:", {"Ref": "AWS::Partition"},
                    ":iam::", {"Ref": "AWS::AccountId"}, ":root",
                ]]
            })
        elif p.startswith(SERVICE_PRINCIPAL_PREFIX):
            block.setdefault("Service", []).append(p[len(SERVICE_PRINCIPAL_PREFIX):])
        else:
            block.setdefault("AWS", []).append(p)
    return {k: v[0] if len(v) == 1 else v for k, v in block.items()}


def _one_or_many(values: Sequence[str]) -> Any:
    return values[0] if len(values) == 1 else list(values)


def to_policy_document(statements: Sequence[PolicyStatement]) -> Dict[str, Any]:
    rendered = []
    for s in statements:
        st: Dict[str, Any] = {}
        if s.sid:
            st["Sid"] = s.sid
        st["Effect"] = s.effect
        st["Principal"] = _principal_block(s.principals)
        st["Action"] = _one_or_many(s.actions)
        st["Resource"] = _one_or_many(s.resources)
        rendered.append(st)
    return {"Version": POLICY_VERSION, "Statement": rendered}
