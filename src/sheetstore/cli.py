"""CLI for sheetstore - credentials and row operations.

Usage:
    sheetstore init                          # Create directories, show setup instructions
    sheetstore status                        # Show credential and settings status
    sheetstore import <path>                 # Import OAuth client credentials
    sheetstore login                         # Interactive OAuth sign-in
    sheetstore logout                        # Revoke OAuth token
    sheetstore whoami                        # Show signed-in user profile
    sheetstore spreadsheet                   # Show the configured spreadsheet
    sheetstore get <sheet> <row>             # Print one row
    sheetstore get-all <sheet>               # Print every row
    sheetstore insert <sheet> <value>...     # Append a row, print its number
    sheetstore update <sheet> <row> <value>...
    sheetstore remove <sheet> <row>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shutil
import sys
from pathlib import Path

from sheetstore.config import TRANSPORTS, SheetsConfig
from sheetstore.exceptions import SheetStoreError


def cmd_init() -> int:
    """Initialize sheetstore credential directory structure."""
    from sheetstore.config import ENV_FILE, GOOGLE_CREDENTIALS, GOOGLE_TOKEN, ensure_google_dir

    print("=" * 60)
    print("SHEETSTORE SETUP")
    print("=" * 60)
    print()

    google_dir = ensure_google_dir()
    print(f"Created: {google_dir}/")
    print()
    print("Credential locations:")
    print()
    print(f"  {ENV_FILE}")
    print("    SHEETSTORE_CLIENT_ID, SHEETSTORE_SPREADSHEET_ID")
    print("    SHEETSTORE_SPREADSHEET_NAME, SHEETSTORE_SHEETS (managed spreadsheet)")
    print()
    print(f"  {GOOGLE_CREDENTIALS}")
    print("    OAuth client credentials from Google Cloud Console")
    print()
    print(f"  {GOOGLE_TOKEN}")
    print("    OAuth tokens (created by 'sheetstore login')")
    print()

    if not GOOGLE_CREDENTIALS.exists():
        print("For Google OAuth, download credentials from:")
        print("  https://console.cloud.google.com/apis/credentials")
        print("  Then run: sheetstore import <path>")
        print()

    return 0


def _print_token_status(config: SheetsConfig) -> None:
    from sheetstore.google import CredentialsNotFoundError, GoogleOAuth

    print("Token:")
    try:
        auth = GoogleOAuth(
            client_id=config.client_id,
            client_secret=config.client_secret,
            token_path=config.token_path,
            credentials_path=config.credentials_path,
        )
    except CredentialsNotFoundError:
        print("  No OAuth client credentials - run 'sheetstore import <path>'")
        return

    info = auth.get_token_info()
    if info["status"] == "no_token":
        print("  No token found - run 'sheetstore login'")
        return

    print(f"  Status        : {info['status']}")
    print(f"  Expires in    : {info['expires_in']}")
    print(f"  Refresh token : {'yes' if info['has_refresh_token'] else 'no'}")


def cmd_status() -> int:
    """Show status of credentials and settings."""
    from sheetstore.config import get_credential_status

    status = get_credential_status()

    print(f"Home: {status['home']}")
    print()
    print("Google:")
    print(f"  credentials.json:   {'[x]' if status['google']['credentials'] else '[ ]'}")
    print(f"  token.json:         {'[x]' if status['google']['token'] else '[ ]'}")
    print()
    print("Settings:")
    for name, configured in status["settings"].items():
        mark = "[x]" if configured else "[ ]"
        print(f"  {mark} {name}")
    print()
    _print_token_status(SheetsConfig.from_env())
    print()
    return 0


def cmd_import(source_path: str) -> int:
    """Import OAuth credentials from a file."""
    from sheetstore.config import GOOGLE_CREDENTIALS, ensure_google_dir

    source = Path(source_path).expanduser()

    if not source.exists():
        print(f"Error: File not found: {source}")
        return 1

    try:
        with open(source) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    if "installed" not in data and "web" not in data:
        print("Error: Invalid OAuth credentials format")
        print("Expected 'installed' or 'web' key in JSON")
        return 1

    ensure_google_dir()
    shutil.copy2(source, GOOGLE_CREDENTIALS)

    print("Imported OAuth credentials")
    print(f"  From: {source}")
    print(f"  To:   {GOOGLE_CREDENTIALS}")
    print()
    print("Next: Run 'sheetstore login' to authorize")
    return 0


def _client_id_from_credentials(config: SheetsConfig) -> str | None:
    if not config.credentials_path.exists():
        return None
    with open(config.credentials_path) as f:
        creds = json.load(f)
    app_creds = creds.get("installed") or creds.get("web") or {}
    return app_creds.get("client_id")


def build_client(args: argparse.Namespace):
    """Build a client from the environment and command line overrides."""
    from sheetstore.sheets import ManagedSheetsClient, SheetsClient

    config = SheetsConfig.from_env()
    if getattr(args, "spreadsheet_id", None):
        config.spreadsheet_id = args.spreadsheet_id
    if getattr(args, "transport", None):
        config.transport = args.transport
    if not config.client_id:
        config.client_id = _client_id_from_credentials(config)

    if config.spreadsheet is not None:
        return ManagedSheetsClient(config)
    return SheetsClient(config)


def _print_rows(rows: list[list]) -> None:
    for row in rows:
        print("\t".join(str(value) for value in row))


# Commands that only read state must not create the managed spreadsheet
_NO_RESOLVE_COMMANDS = ("logout", "whoami", "spreadsheet")


async def _run(args: argparse.Namespace) -> int:
    client = build_client(args)
    try:
        await client.initialize(resolve=args.command not in _NO_RESOLVE_COMMANDS)
        return await _dispatch(client, args)
    finally:
        client.close()


async def _dispatch(client, args: argparse.Namespace) -> int:
    if args.command == "login":
        await client.user.sign_in()
        profile = await client.user.get_profile()
        print(f"Signed in as {profile.email if profile else 'unknown user'}")
        if client.spreadsheet_id:
            print(f"Spreadsheet: {client.spreadsheet_id}")
        return 0

    if args.command == "logout":
        await client.user.sign_out()
        print("Token revoked and local cache cleared")
        return 0

    if args.command == "whoami":
        profile = await client.user.get_profile()
        if profile is None:
            print("Not signed in - run 'sheetstore login'")
            return 1
        print(f"Name  : {profile.name}")
        print(f"Email : {profile.email}")
        print(f"ID    : {profile.id}")
        return 0

    if args.command == "spreadsheet":
        if not hasattr(client, "get_spreadsheet"):
            print(f"Spreadsheet: {client.spreadsheet_id or 'not set'}")
            return 0
        spreadsheet = await client.get_spreadsheet()
        if spreadsheet is None:
            print("Spreadsheet not found")
            return 1
        default_sheet = spreadsheet.default_sheet
        print(f"Title  : {spreadsheet.title}")
        print(f"ID     : {spreadsheet.id}")
        print(f"URL    : {spreadsheet.url}")
        print(f"Sheets : {', '.join(s.title for s in spreadsheet.sheets or [])}")
        print(f"First  : {default_sheet.title if default_sheet else '-'}")
        return 0

    if args.command == "get":
        _print_rows([await client.get(args.sheet, args.row)])
    elif args.command == "get-all":
        _print_rows(await client.get_all(args.sheet))
    elif args.command == "insert":
        print(await client.insert(args.sheet, args.values))
    elif args.command == "update":
        await client.update(args.sheet, args.row, args.values)
    elif args.command == "remove":
        await client.remove(args.sheet, args.row)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sheetstore",
        description="Use a Google Sheets spreadsheet as a row-oriented datastore",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--spreadsheet-id", help="Spreadsheet ID (overrides environment)")
    parser.add_argument(
        "--transport",
        choices=list(TRANSPORTS),
        help="API transport (default: discovery)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("init", help="Initialize credential directories")
    subparsers.add_parser("status", help="Show credential status")

    import_parser = subparsers.add_parser("import", help="Import OAuth credentials")
    import_parser.add_argument("path", help="Path to credentials.json file")

    subparsers.add_parser("login", help="Interactive OAuth sign-in")
    subparsers.add_parser("logout", help="Revoke OAuth token")
    subparsers.add_parser("whoami", help="Show signed-in user")
    subparsers.add_parser("spreadsheet", help="Show the configured spreadsheet")

    get_parser = subparsers.add_parser("get", help="Print one row")
    get_parser.add_argument("sheet")
    get_parser.add_argument("row", type=int)

    get_all_parser = subparsers.add_parser("get-all", help="Print every row")
    get_all_parser.add_argument("sheet")

    insert_parser = subparsers.add_parser("insert", help="Append a row")
    insert_parser.add_argument("sheet")
    insert_parser.add_argument("values", nargs="+")

    update_parser = subparsers.add_parser("update", help="Overwrite a row")
    update_parser.add_argument("sheet")
    update_parser.add_argument("row", type=int)
    update_parser.add_argument("values", nargs="+")

    remove_parser = subparsers.add_parser("remove", help="Clear a row")
    remove_parser.add_argument("sheet")
    remove_parser.add_argument("row", type=int)

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "init":
        return cmd_init()

    if args.command == "status":
        return cmd_status()

    if args.command == "import":
        return cmd_import(args.path)

    try:
        return asyncio.run(_run(args))
    except (SheetStoreError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
