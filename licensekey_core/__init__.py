"""
License Key Core Package
========================
Declares the asymmetric key used to sign licenses and hands it to a
provisioning engine.

Provides:
- KeyDescriptor / PolicyStatement / ExportedOutput value types
- Fail-fast validation of key usage, key spec, rotation, tags and policy
- Deterministic CloudFormation rendering
- Provisioning engines (in-memory, AWS CDK, CloudFormation)
"""

from .builder import BuildResult, KeyDescriptorBuilder, Scope, build_license_key
from .config import KeyConfig, load_config
from .constants import KeySpec, KeyUsage
from .descriptor import AttributeRef, ExportedOutput, KeyDescriptor, Tag
from .errors import ApplyError, ConfigurationError, LicenseKeyError
from .policy import PolicyStatement, account_root_admin_statement

__all__ = [
    "ApplyError",
    "AttributeRef",
    "BuildResult",
    "ConfigurationError",
    "ExportedOutput",
    "KeyConfig",
    "KeyDescriptor",
    "KeyDescriptorBuilder",
    "KeySpec",
    "KeyUsage",
    "LicenseKeyError",
    "PolicyStatement",
    "Scope",
    "Tag",
    "account_root_admin_statement",
    "build_license_key",
    "load_config",
]
