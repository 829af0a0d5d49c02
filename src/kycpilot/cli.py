"""
KYCPilot CLI

Command-line interface for generating requirement documents and
checking rule packs.

Usage:
    kycpilot requirements individual --customer-type INDIVIDUAL --account-type SAVINGS
    kycpilot requirements corporate --product FX --format flat
    kycpilot validate-packs packs/
    kycpilot catalog
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from . import catalog, config
from .engine import KycRequirementService, RuleEngine
from .exceptions import ConfigurationError, EvaluationFailure
from .models import CustomerVariant, PresentationMode
from .packs import RulePack, RulePackLoader, build_rule_set
from .packs.loader import PACK_SUFFIXES

VARIANT_CHOICES = {
    "individual": CustomerVariant.INDIVIDUAL,
    "individual-product": CustomerVariant.INDIVIDUAL_PRODUCT,
    "corporate": CustomerVariant.CORPORATE,
}


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _build_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload = {
        "customerType": args.customer_type,
        "accountType": args.account_type,
        "product": args.product,
        "nationality": args.nationality,
        "pep": args.pep,
        "country": args.country,
    }
    return {k: v for k, v in payload.items() if v is not None}


def cmd_requirements(args: argparse.Namespace) -> int:
    """Print the requirement document for one request."""
    rules_dir = Path(args.rules_dir) if args.rules_dir else config.KYC_RULES_DIR

    try:
        rule_set = RulePackLoader(
            strict_version=config.KYC_STRICT_SCHEMA_VERSION
        ).load_directory(rules_dir)
        service = KycRequirementService(RuleEngine(rule_set))
        document = service.get_requirements(
            VARIANT_CHOICES[args.variant],
            _build_payload(args),
            PresentationMode(args.format),
        )
    except (ConfigurationError, EvaluationFailure) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    _print_json(document)
    return 1 if document.get("error") else 0


def _print_pack_errors(details: dict[str, Any]) -> None:
    errors = details.get("errors")
    if isinstance(errors, list):
        for i, err in enumerate(errors[:20], 1):
            loc = " -> ".join(str(x) for x in err.get("loc", []))
            print(f"    {i}. {loc}: {err.get('msg', 'Unknown')}")
        if len(errors) > 20:
            print(f"    ... and {len(errors) - 20} more errors")
    elif errors:
        print(f"    {errors}")


def cmd_validate_packs(args: argparse.Namespace) -> int:
    """Load every pack in a directory and report problems."""
    directory = Path(args.directory) if args.directory else config.KYC_RULES_DIR
    if not directory.is_dir():
        print(f"[ERROR] Not a directory: {directory}")
        return 1

    loader = RulePackLoader(strict_version=config.KYC_STRICT_SCHEMA_VERSION)
    paths = sorted(p for p in directory.iterdir() if p.suffix.lower() in PACK_SUFFIXES)
    if not paths:
        print(f"[ERROR] No rule packs found in {directory}")
        return 1

    valid: list[RulePack] = []
    invalid: list[str] = []

    for path in paths:
        try:
            pack = loader.load(path)
        except ConfigurationError as e:
            print(f"  [ERROR] {path.name}: {e.message}")
            _print_pack_errors(e.details)
            invalid.append(path.name)
            continue
        print(f"  [OK] {path.name}: {pack.id} ({len(pack.rules)} rules)")
        valid.append(pack)

    if not invalid:
        try:
            rule_set = build_rule_set(valid)
        except ConfigurationError as e:
            print(f"  [ERROR] Rule set: {e.message}")
            invalid.append("<rule set>")
        else:
            print(f"\nRule set: {len(rule_set)} rules, hash {rule_set.content_hash[:16]}")

    print(f"\nValid packs:   {len(valid)}")
    print(f"Invalid packs: {len(invalid)}")
    return 0 if not invalid else 1


def cmd_catalog(args: argparse.Namespace) -> int:
    """Print the reference lists."""
    data: dict[str, Any] = {}
    data.update(catalog.customer_types())
    data.update(catalog.account_types())
    data.update(catalog.corporate_products())
    _print_json(data)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="KYCPilot requirement engine CLI",
        prog="kycpilot",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Requirements command
    req_parser = subparsers.add_parser("requirements", help="Generate a requirement document")
    req_parser.add_argument("variant", choices=list(VARIANT_CHOICES), help="Request variant")
    req_parser.add_argument("--customer-type", help="Customer type (individual)")
    req_parser.add_argument("--account-type", help="Account type (individual)")
    req_parser.add_argument("--product", help="Product code (individual-product, corporate)")
    req_parser.add_argument("--nationality", help="Nationality (individual)")
    req_parser.add_argument(
        "--pep",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Politically exposed person (individual)",
    )
    req_parser.add_argument("--country", help="Country of residence or incorporation")
    req_parser.add_argument(
        "--format",
        choices=[m.value for m in PresentationMode],
        default=config.KYC_DEFAULT_FORMAT.value,
        help="Presentation mode",
    )
    req_parser.add_argument("--rules-dir", help="Rule pack directory")
    req_parser.set_defaults(func=cmd_requirements)

    # Validate command
    val_parser = subparsers.add_parser("validate-packs", help="Validate rule packs")
    val_parser.add_argument("directory", nargs="?", help="Rule pack directory")
    val_parser.set_defaults(func=cmd_validate_packs)

    # Catalog command
    cat_parser = subparsers.add_parser("catalog", help="Show reference lists")
    cat_parser.set_defaults(func=cmd_catalog)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
