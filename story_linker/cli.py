"""Run a single ProductBoard -> ADO link from the command line.

Usage:
    # Link using the latest captured session from the store
    python -m story_linker.cli --story-url "https://acme.productboard.com/..." --project "Healthcare" --work-item 12345

    # Link using a session exported to a JSON file, with a visible browser
    python -m story_linker.cli --story-url ... --project ... --work-item ... --auth-file pb_session.json --headed

    # Save an exported session into the store for later runs
    python -m story_linker.cli --import-auth pb_session.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.auth_store import get_latest_auth_bundle, init_auth_store, save_auth_session
from .models import AuthBundle, LinkRequest
from .settings import LinkerSettings, load_env_files
from .workflow import link_story

logger = logging.getLogger(__name__)


def _read_bundle(path: Path) -> AuthBundle:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        # Bare cookie export from a browser extension
        data = {"cookies": data}
    return AuthBundle.from_dict(data)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Link a ProductBoard story to an existing Azure DevOps work item",
    )
    parser.add_argument("--story-url", help="ProductBoard story URL")
    parser.add_argument("--project", help="ADO project name as shown in ProductBoard")
    parser.add_argument("--work-item", help="ADO work item id")
    parser.add_argument(
        "--auth-file",
        type=Path,
        help="JSON file with captured cookies/localStorage (default: latest stored session)",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument(
        "--import-auth",
        type=Path,
        metavar="FILE",
        help="Store a captured session from FILE and exit",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    load_env_files()
    init_auth_store()

    if args.import_auth:
        bundle = _read_bundle(args.import_auth)
        if not bundle.cookies:
            logger.error(f"No cookies found in {args.import_auth}")
            return 1
        session_id = save_auth_session(bundle.cookies, bundle.local_storage)
        print(json.dumps({"sessionId": session_id, "cookieCount": len(bundle.cookies)}))
        return 0

    if not (args.story_url and args.project and args.work_item):
        parser.error("--story-url, --project and --work-item are required (or use --import-auth)")

    bundle = _read_bundle(args.auth_file) if args.auth_file else get_latest_auth_bundle()
    if bundle is None:
        logger.error("No stored ProductBoard session. Use --import-auth or --auth-file.")
        return 1

    settings = LinkerSettings.from_env()
    if args.headed:
        settings.headless = False

    request = LinkRequest(
        pb_story_url=args.story_url.strip(),
        ado_project_name=args.project.strip(),
        ado_story_id=args.work_item.strip(),
    )
    outcome = link_story(request, bundle, settings=settings)
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    sys.exit(main())
