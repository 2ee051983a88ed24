#!/usr/bin/env python3
"""
Troubleshoot - load support bundle / preflight specs, collect evidence, analyze it.
"""

import argparse
import logging
import sys
from typing import List, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

logger = logging.getLogger(__name__)


def read_spec_inputs(paths: List[str]) -> List[str]:
    """Read each `--spec` argument; `-` reads stdin."""
    out: List[str] = []
    for path in paths:
        if path == "-":
            out.append(sys.stdin.read())
            continue
        with open(path, "r", encoding="utf-8") as f:
            out.append(f.read())
    return out


def read_secret_input(secret_ref: str, key: str) -> str:
    from troubleshoot.core.errors import TroubleshootError
    from troubleshoot.specs.secrets import load_from_secret

    namespace, sep, name = secret_ref.partition("/")
    if not sep or not namespace or not name:
        raise TroubleshootError(f"--secret must be NAMESPACE/NAME, got {secret_ref!r}")
    return load_from_secret(namespace, name, key).decode("utf-8", errors="replace")


def print_results(results) -> None:
    for r in results:
        verdict = "PASS" if r.is_pass else "WARN" if r.is_warn else "FAIL"
        print(f"[{verdict}] {r.title}: {r.message}")


def run(args: argparse.Namespace) -> int:
    from troubleshoot.analyze import CollectedFiles, analyze_kinds
    from troubleshoot.collect import build_collectors, run_collectors
    from troubleshoot.config import load_config
    from troubleshoot.core.constants import EXIT_CODE_FAIL, EXIT_CODE_WARN
    from troubleshoot.loader import LoadOptions, load_specs

    cfg = load_config()
    raw_specs = read_spec_inputs(args.spec or [])
    if args.secret:
        raw_specs.append(read_secret_input(args.secret, args.key))

    kinds = load_specs(LoadOptions(raw_specs=raw_specs, strict=args.strict or cfg.strict))
    logger.info("Loaded specs: %s", ", ".join(f"{k}={n}" for k, n in kinds.counts().items() if n) or "none")

    if args.dump_yaml:
        sys.stdout.write(kinds.to_yaml())

    if not (args.collect or args.analyze):
        return 0

    bundle_dir = args.bundle_dir or cfg.bundle_dir
    collectors = build_collectors(kinds, bundle_path=bundle_dir, namespace=args.namespace)
    collection = run_collectors(collectors)
    for title, err in collection.errors.items():
        print(f"collector {title} failed: {err}", file=sys.stderr)

    if not args.analyze:
        return 0

    results = analyze_kinds(kinds, CollectedFiles.from_mapping(collection.result))
    print_results(results)
    if any(r.is_fail for r in results):
        return EXIT_CODE_FAIL
    if any(r.is_warn for r in results):
        return EXIT_CODE_WARN
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Load troubleshoot specs, collect evidence and analyze it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate specs and print the canonical v1beta2 form
  python main.py --spec support-bundle.yaml --dump-yaml --strict

  # Read a spec from a cluster secret, collect and analyze
  python main.py --secret default/my-bundle --key support-bundle-spec --analyze
        """,
    )
    parser.add_argument("--spec", action="append", help="Spec file (repeatable, '-' for stdin)")
    parser.add_argument("--secret", help="Load a spec from a Secret (NAMESPACE/NAME)")
    parser.add_argument("--key", default="support-bundle-spec", help="Secret key holding the spec")
    parser.add_argument("--strict", action="store_true", help="Fail on the first invalid document")
    parser.add_argument("--dump-yaml", action="store_true", help="Print loaded specs as v1beta2 YAML")
    parser.add_argument("--collect", action="store_true", help="Run the collectors")
    parser.add_argument("--analyze", action="store_true", help="Run collectors and analyzers")
    parser.add_argument("--bundle-dir", help="Also write collected files below this directory")
    parser.add_argument("--namespace", default="default", help="Namespace for image pull secrets")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    from troubleshoot.config import load_config
    from troubleshoot.core.errors import SpecIssueError, TroubleshootError

    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(load_config().log_level)

    if not args.spec and not args.secret:
        print("Error: provide at least one --spec or --secret", file=sys.stderr)
        return 1

    try:
        return run(args)
    except SpecIssueError as e:
        logger.error("Invalid spec: %s", e)
        return e.exit_code
    except TroubleshootError as e:
        logger.error("%s", e)
        return e.exit_code
    except OSError as e:
        logger.error("Failed to read input: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
