"""
Randotracker CLI - Command-line interface for the tracker.

Usage:
    randotracker validate <logic_file>              Validate a logic file
    randotracker facts <logic_file> [--set NAME]    Print facts after setting some
    randotracker explain <logic_file> <name>        Explain a bound rule
    randotracker serve <logic_file>                 Run the REST API
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Randotracker - Reactive randomizer item tracker",
        prog="randotracker",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a logic file")
    validate_parser.add_argument("logic_file", help="Path to logic file (JSON or YAML)")

    # Facts command
    facts_parser = subparsers.add_parser("facts", help="Print facts after setting some")
    facts_parser.add_argument("logic_file", help="Path to logic file (JSON or YAML)")
    facts_parser.add_argument(
        "--set", dest="set_facts", action="append", default=[], metavar="NAME",
        help="Set a fact to true before printing (repeatable)",
    )
    facts_parser.add_argument("--logic", help="Logic variant to use")
    facts_parser.add_argument("--bound-only", action="store_true", help="Only print facts bound to rules")

    # Explain command
    explain_parser = subparsers.add_parser("explain", help="Explain a bound rule")
    explain_parser.add_argument("logic_file", help="Path to logic file (JSON or YAML)")
    explain_parser.add_argument("name", help="Fact bound to a rule")
    explain_parser.add_argument("--logic", help="Logic variant to use")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("logic_file", help="Path to logic file (JSON or YAML)")
    serve_parser.add_argument("--logic", help="Logic variant to use")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        cmd_validate(args)
    elif args.command == "facts":
        cmd_facts(args)
    elif args.command == "explain":
        cmd_explain(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load(logic_file):
    import yaml

    from .spec_schema import load_logic

    try:
        return load_logic(logic_file)
    except FileNotFoundError:
        print(f"Error: File not found: {logic_file}")
        sys.exit(1)
    except (ValueError, yaml.YAMLError) as e:
        # pydantic ValidationError, bad JSON or bad YAML
        print(f"Error: Could not load {logic_file}: {e}")
        sys.exit(1)


def _build(args):
    from .engine_core import RuleError
    from .spec_schema import LogicValidationError
    from .tracker import build_database

    spec = _load(args.logic_file)
    try:
        return build_database(spec, logic=getattr(args, "logic", None))
    except LogicValidationError as e:
        print("Errors:")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)
    except (RuleError, KeyError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_validate(args):
    """Validate a logic file."""
    from .spec_schema import validate_logic

    print(f"Validating: {args.logic_file}")
    spec = _load(args.logic_file)
    result = validate_logic(spec)

    print(f"Logic: {spec.name}")
    print(f"Items: {len(spec.items)}")
    print(f"Rules: {len(spec.rules)}")
    print(f"Regions: {len(spec.regions)}")
    print(f"Locations: {len(spec.locations)}")
    print(f"Dungeons: {len(spec.dungeons)}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("\nOK")


def cmd_facts(args):
    """Print every fact after setting the given ones true."""
    db = _build(args)
    env = db.environment
    for name in args.set_facts:
        if env.is_bound_to_rule(name):
            print(f"Error: '{name}' is bound to a rule and can't be set")
            sys.exit(1)
        env.set(name, True)
    db.run_pending()

    for name in sorted(env.keys()):
        bound = env.is_bound_to_rule(name)
        if args.bound_only and not bound:
            continue
        marker = "*" if bound else " "
        print(f"{marker} {name}: {env.is_true(name)}")


def cmd_explain(args):
    """Explain a bound rule."""
    from .tracker import explain

    db = _build(args)
    rule = db.environment.get_bound_rule(args.name)
    if rule is None:
        print(f"Error: No rule bound to '{args.name}'")
        sys.exit(1)

    print(f"{args.name}: {db.environment.is_true(args.name)}")
    print(f"Rule: {rule}")
    print(f"Requires: {explain(rule, db)}")


def cmd_serve(args):
    """Run the REST API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    from .api import TrackerService, create_app

    service = TrackerService(database=_build(args))
    print(f"Serving '{service.database.name}' on http://{args.host}:{args.port}/api/docs")
    uvicorn.run(create_app(service), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
