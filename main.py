#!/usr/bin/env python3
"""
Catalog Hierarchy Console - CLI Entry Point

Version 1.2.0

Command-line interface for inspecting and editing the two-level
SubCategory hierarchy of the catalog admin API.
"""

import argparse
import sys
import os
import logging

# Add current directory to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from hierarchy_modules.config import load_config, save_config, setup_logging, log_and_status, SCRIPT_VERSION
from hierarchy_modules.errors import ConstraintViolation, HierarchyError
from hierarchy_modules import catalog_api
from hierarchy_modules.ordering import format_hierarchy
from hierarchy_modules.reconciler import save_subcategory
from hierarchy_modules.resolver import resolve_available_parents, resolve_children
from hierarchy_modules.taxonomy import resolve_lineage


def print_status(message: str) -> None:
    """Status callback for CLI mode - prints to stdout."""
    print(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        description="Catalog Hierarchy Console - manage nested subcategories via the admin API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s parents --category 7
  %(prog)s list --category 7
  %(prog)s create --category 7 --name "Polarized" --parent 10
  %(prog)s update 11 --top-level
  %(prog)s update 11 --name "Polarized Pro" --inactive
        """
    )
    parser.add_argument(
        "--log", "-l",
        help="Path to log file (optional)"
    )
    parser.add_argument(
        "--api-url",
        help="Override API_BASE_URL from config.json and save it"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {SCRIPT_VERSION}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    parents = subparsers.add_parser("parents", help="List legal parent subcategories for a category")
    parents.add_argument("--category", "-c", type=int, required=True, help="Category id")
    parents.add_argument("--exclude", "-x", type=int, help="Id of the subcategory being edited")

    children = subparsers.add_parser("children", help="List nested subcategories under a top-level subcategory")
    children.add_argument("parent", type=int, help="Top-level subcategory id")

    listing = subparsers.add_parser("list", help="Show subcategories in display order")
    listing.add_argument("--category", "-c", type=int, help="Category id (all categories when omitted)")

    create = subparsers.add_parser("create", help="Create a subcategory")
    _add_write_arguments(create, required=True)

    update = subparsers.add_parser("update", help="Update a subcategory")
    update.add_argument("id", type=int, help="Subcategory id")
    _add_write_arguments(update, required=False)

    delete = subparsers.add_parser("delete", help="Delete a subcategory")
    delete.add_argument("id", type=int, help="Subcategory id")

    return parser


def _add_write_arguments(subparser, required):
    """
    Arguments shared by create and update.

    On update every option is optional and an omitted one keeps the stored
    value, so the placement only changes with --parent or --top-level.
    """
    subparser.add_argument("--category", "-c", type=int, required=required, help="Category id")
    subparser.add_argument("--name", "-n", required=required, help="Display name")
    subparser.add_argument("--slug", "-s", help="URL slug (generated from name on create when omitted)")
    placement = subparser.add_mutually_exclusive_group()
    placement.add_argument("--parent", "-p", type=int, help="Top-level subcategory to nest under")
    placement.add_argument("--top-level", action="store_true", help="Store as a top-level subcategory")
    subparser.add_argument("--sort-order", type=int, help="Display sort order")
    subparser.add_argument("--description", "-d", help="Description")
    status = subparser.add_mutually_exclusive_group()
    status.add_argument("--active", dest="is_active", action="store_const", const=True, help="Mark as active")
    status.add_argument("--inactive", dest="is_active", action="store_const", const=False, help="Mark as inactive")


def build_form(args, existing=None):
    """
    Turn write arguments into operator input for save_subcategory.

    Args:
        args: Parsed create/update arguments
        existing: Stored SubCategory on update; None on create

    Returns:
        Form dictionary: the stored record overlaid with the options given
    """
    if existing is None:
        form = {"is_active": True}
    else:
        form = {key: value for key, value in existing.items() if key != "id"}

    overrides = {
        "name": args.name,
        "slug": args.slug,
        "category_id": args.category,
        "sort_order": args.sort_order,
        "description": args.description,
        "is_active": args.is_active
    }
    for key, value in overrides.items():
        if value is not None:
            form[key] = value

    if args.top_level:
        form["parent_id"] = None
    elif args.parent is not None:
        form["parent_id"] = args.parent

    return form


def run_command(cfg, args) -> int:
    """Run one subcommand. Returns the process exit code."""
    if args.command == "parents":
        parents = resolve_available_parents(cfg, args.category, exclude_id=args.exclude)
        if not parents:
            print(f"Category {args.category} has no top-level subcategories yet.")
            return 0
        for node in parents:
            print(f"{node.get('id')}\t{node.get('name')}\t{node.get('slug')}")
        return 0

    if args.command == "children":
        for node in resolve_children(cfg, args.parent):
            print(f"{node.get('id')}\t{node.get('name')}\t{node.get('slug')}")
        return 0

    if args.command == "list":
        categories = catalog_api.list_categories(cfg)
        nodes = catalog_api.list_all_subcategories(cfg, category_id=args.category)
        if not nodes:
            print("No subcategories found")
            return 0
        for line in format_hierarchy(nodes, categories):
            print(line)
        return 0

    if args.command in ("create", "update"):
        existing_id = getattr(args, "id", None)
        existing = None
        if existing_id is not None:
            existing = catalog_api.get_subcategory(cfg, existing_id)
        form = build_form(args, existing)

        snapshot = catalog_api.list_all_subcategories(cfg, category_id=form.get("category_id"))
        if existing_id is not None and "parent_id" not in form:
            # Detail response omitted the linkage; the list record still has it
            stored = next((n for n in snapshot if n.get("id") == existing_id), None)
            if stored is not None and "parent_id" in stored:
                form["parent_id"] = stored["parent_id"]

        saved = save_subcategory(cfg, form, existing_id=existing_id, snapshot=snapshot)
        lineage = resolve_lineage(saved, snapshot)
        if lineage["nested_id"] is None:
            placement = "top-level"
        else:
            placement = f"nested under {lineage['top_level_id']}"
        verb = "Created" if existing_id is None else "Updated"
        log_and_status(
            print_status,
            f"{verb} subcategory {saved.get('id')} '{saved.get('name')}' "
            f"in category {lineage['category_id']} ({placement})"
        )
        return 0

    if args.command == "delete":
        catalog_api.delete_subcategory(cfg, args.id)
        print(f"Deleted subcategory {args.id}")
        return 0

    return 2


def main(argv=None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log, logging.DEBUG if args.verbose else logging.INFO)

    # Load configuration
    cfg = load_config()

    if args.api_url:
        cfg["API_BASE_URL"] = args.api_url
        save_config(cfg)

    if not str(cfg.get("API_BASE_URL", "")).strip():
        print("Error: API_BASE_URL not configured in config.json", file=sys.stderr)
        return 1

    try:
        return run_command(cfg, args)
    except ConstraintViolation as e:
        log_and_status(print_status, f"Conflict ({e.scope}): {e}", level="error")
        return 1
    except HierarchyError as e:
        log_and_status(print_status, f"Error: {e}", level="error")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
