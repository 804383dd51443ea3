"""
Foyer command line interface.

    foyer dev --app-file main.py          # 127.0.0.1, auto-reload
    foyer run --app-file main.py --port 80
    foyer routes --packages shop.controllers
"""

import argparse
import os
import sys
from typing import List, Optional

import uvicorn

from .config import Settings
from .exceptions import ConfigurationError
from .routing import RegistryBuilder, RouteRegistry


def find_app_string(file_path: str = "app.py") -> str:
    """
    Formats the file path to Uvicorn convention: 'module:app_object'.

    Assumes that application object is named 'app' inside the file.
    """
    module_name = os.path.basename(file_path).replace(".py", "")
    return f"{module_name}:app"


def format_routes(registry: RouteRegistry) -> List[str]:
    """One line per handler: verbs, path and handler name, in matching order."""
    lines = []
    for route in registry.routes:
        for handler in route.handlers:
            verbs = ",".join(sorted(method.value for method in handler.http_methods)) or "*"
            lines.append(f"{verbs:<9} {route.path:<30} {handler.qualified_name}")
    return lines


def _add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--app-file",
        type=str,
        default="app.py",
        help="Path to the file containing the Foyer instance (e.g., main.py).",
    )
    parser.add_argument("--port", type=int, default=8000, help="The port to listen on.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foyer",
        description="Foyer Framework Command Line Interface for running ASGI applications.",
        epilog="Example: foyer dev --app-file main.py",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    dev_parser = subparsers.add_parser(
        "dev",
        help="Run the application in development mode with auto-reload (Uvicorn).",
        description="Binds to 127.0.0.1 (localhost) and enables auto-reload.",
    )
    _add_server_arguments(dev_parser)
    dev_parser.add_argument(
        "--no-reload",
        dest="reload",
        action="store_false",
        help="Disable auto-reload on code changes.",
    )

    run_parser = subparsers.add_parser(
        "run",
        help="Run the application in production mode.",
        description="Binds to 0.0.0.0 (public) and disables auto-reload.",
    )
    _add_server_arguments(run_parser)

    routes_parser = subparsers.add_parser(
        "routes",
        help="Scan controller packages and print the route table.",
    )
    routes_parser.add_argument(
        "--packages",
        type=str,
        default=None,
        help="Comma-separated packages to scan (default: FOYER_CONTROLLERS_PACKAGES).",
    )
    return parser


def show_routes(packages: Optional[str]) -> int:
    settings = (
        Settings(controllers_packages=packages) if packages is not None else Settings.from_env()
    )
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    try:
        registry = RegistryBuilder().scan_packages(settings.controllers_packages).build()
    except ConfigurationError as e:
        print(f"Invalid route configuration: {e}", file=sys.stderr)
        return 1

    lines = format_routes(registry)
    for line in lines:
        print(line)
    if not lines:
        print(f"No routes found in: {', '.join(settings.controllers_packages)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Foyer CLI interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "routes":
        return show_routes(args.packages)

    app_file_path = os.path.abspath(args.app_file)
    app_dir = os.path.dirname(app_file_path)

    # The Uvicorn reloader subprocess inherits this import path
    if app_dir not in sys.path:
        sys.path.insert(0, app_dir)

    app_string = find_app_string(args.app_file)

    if args.command == "dev":
        host = "127.0.0.1"
        reload = args.reload
        reload_dirs: Optional[List[str]] = [app_dir]
        log_level = "info"
    else:
        host = "0.0.0.0"
        reload = False
        reload_dirs = None
        log_level = "warning"

    print(f"Foyer CLI: Running in {args.command.upper()} mode")
    print(f"Host: http://{host}:{args.port}")
    print(f"App: {app_string}")

    try:
        uvicorn.run(
            app_string,
            host=host,
            port=args.port,
            reload=reload,
            reload_dirs=reload_dirs,
            log_level=log_level,
            log_config=None,
        )
    except Exception as e:
        print(
            f"\nFATAL ERROR: The server failed to start or find the application '{args.app_file}'.",
            file=sys.stderr,
        )
        print("Ensure that the file contains 'app = Foyer()'.", file=sys.stderr)
        print(f"Error details: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
