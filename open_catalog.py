"""
Command line interface for Open Catalog projects.

Examples:
    python open_catalog.py create ./study --name "Study A"
    python open_catalog.py add ./study/project.ocproj ./study/images/*.tif
    python open_catalog.py list ./study/project.ocproj
    python open_catalog.py remove ./study/project.ocproj <identity-or-path>
    python open_catalog.py set-meta ./study/project.ocproj <identity> rotate180 true
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from OC_Libs.CatalogLib.project_catalog import ProjectCatalog
from OC_Libs.CatalogLib.project_store import create_project_file
from OC_Libs.errors import CatalogError

logger = logging.getLogger("open_catalog")


def _cmd_create(args: argparse.Namespace) -> int:
    path = create_project_file(Path(args.directory), args.name)
    print(path)
    return 0


def _cmd_add(args: argparse.Namespace) -> int:
    catalog = ProjectCatalog.load(args.project)
    added = 0
    for path in args.paths:
        try:
            if catalog.add_image(path):
                added += 1
        except CatalogError as e:
            logger.error(f"Skipping {path}: {e}")
    print(f"Added {added} of {len(args.paths)} images ({catalog.size()} in project)")
    return 0 if catalog.sync() else 1


def _cmd_list(args: argparse.Namespace) -> int:
    catalog = ProjectCatalog.load(args.project)
    print(catalog)
    for entry in catalog.get_image_list():
        marker = "*" if entry.has_data() else " "
        print(f"{marker} {entry.identity}  {entry}  [{entry.stored_path}]")
    return 0


def _cmd_remove(args: argparse.Namespace) -> int:
    catalog = ProjectCatalog.load(args.project)
    if not catalog.remove_all_images(args.targets):
        print("Nothing removed")
        return 0
    return 0 if catalog.sync() else 1


def _cmd_set_meta(args: argparse.Namespace) -> int:
    catalog = ProjectCatalog.load(args.project)
    entry = catalog.get_entry_by_identity(args.identity)
    if entry is None:
        logger.error(f"No image with identity {args.identity}")
        return 1
    entry.put_metadata_value(args.key, args.value)
    return 0 if catalog.sync() else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Manage Open Catalog image projects")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new project descriptor in a directory")
    create.add_argument("directory", help="Project base directory")
    create.add_argument("--name", default=None, help="Project display name")
    create.set_defaults(func=_cmd_create)

    add = sub.add_parser("add", help="Add images (and their sub-images) to a project")
    add.add_argument("project", help="Project descriptor file")
    add.add_argument("paths", nargs="+", help="Image paths or URIs")
    add.set_defaults(func=_cmd_add)

    lst = sub.add_parser("list", help="List the images of a project")
    lst.add_argument("project", help="Project descriptor file")
    lst.set_defaults(func=_cmd_list)

    remove = sub.add_parser("remove", help="Remove images by identity or path")
    remove.add_argument("project", help="Project descriptor file")
    remove.add_argument("targets", nargs="+", help="Identities, paths or URIs")
    remove.set_defaults(func=_cmd_remove)

    set_meta = sub.add_parser("set-meta", help="Set a metadata value on one image")
    set_meta.add_argument("project", help="Project descriptor file")
    set_meta.add_argument("identity", help="Image identity")
    set_meta.add_argument("key", help="Metadata key")
    set_meta.add_argument("value", help="Metadata value")
    set_meta.set_defaults(func=_cmd_set_meta)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except CatalogError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
