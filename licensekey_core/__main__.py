"""
Command line entry point.

    python -m licensekey_core template            # print the CloudFormation template
    python -m licensekey_core --engine memory apply
"""

import argparse
import json
import os
import sys

from licensekey_core.builder import KeyDescriptorBuilder, Scope
from licensekey_core.config import load_config
from licensekey_core.engine import apply_descriptor, engine_factory
from licensekey_core.errors import ApplyError, ConfigurationError
from licensekey_core.logger import get_logger, redirect_console
from licensekey_core.template import render_template

log = get_logger("LicenseKey.CLI")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="licensekey_core", description="License signing key descriptor")
    parser.add_argument("--config", help="JSON configuration file (default: LICENSEKEY_CONFIG or built-in)")
    parser.add_argument("--engine", help="memory | cdk | cloudformation (default: LICENSEKEY_ENGINE)")
    parser.add_argument("--stack", default=os.getenv("LICENSEKEY_STACK_NAME", "LicenseKeyStack"),
                        help="scope / stack name (default: LICENSEKEY_STACK_NAME)")
    parser.add_argument("command", choices=["template", "apply"])
    args = parser.parse_args(argv)

    # stdout carries the JSON result; logs go to stderr
    previous = redirect_console(sys.stderr)
    try:
        return _run(args)
    finally:
        if previous is not None:
            redirect_console(previous)


def _run(args) -> int:
    try:
        result = KeyDescriptorBuilder(Scope(args.stack)).build(load_config(args.config))
        if args.command == "template":
            out = render_template(result)
        else:
            out = apply_descriptor(engine_factory(args.engine, stack_name=args.stack), result).to_dict()
    except ConfigurationError as e:
        log.error(f"[CONFIG] {e}")
        print(f"configuration error: {e}", file=sys.stderr)
        return 2
    except ApplyError as e:
        log.error(f"[APPLY] {e}")
        print(f"apply error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
