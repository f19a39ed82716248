"""
=============================================================================
HTTPKIT CLI ENTRY POINT
=============================================================================

Command-line access to the client and the curl translator.

=============================================================================
USAGE
=============================================================================

    # Print the curl command for a request
    python -m httpkit to-command http://localhost:8000/post -X POST -d foo=bar

    # JSON body with a bearer token
    python -m httpkit to-command http://localhost:8000/api -X POST \\
        --json '{"foo": "bar"}' --bearer my-token

    # Show the wire form of a curl command
    python -m httpkit from-command 'curl -X POST -d "foo=bar" "http://localhost:8000/post"'

    # Send a request and print the response
    python -m httpkit send http://localhost:8000/api -H "Accept: application/json"

Transfer defaults (timeout, TLS, redirects, ...) come from the
HTTPKIT_* environment variables; see ClientConfig.from_env().
=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .auth import Auth
from .client import Client, Request
from .client.curl_command import command_to_request
from .config import ClientConfig, LOG_LEVELS
from .exceptions import HttpError


logger = logging.getLogger("httpkit.cli")


def _parse_header(value: str):
    name, sep, header_value = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"Header must look like 'Name: value': {value}")
    return name.strip(), header_value.strip()


def _parse_field(value: str):
    name, sep, field_value = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"Data field must look like 'name=value': {value}")
    return name, field_value


def build_client(args: argparse.Namespace, config: ClientConfig) -> Client:
    """Turn request arguments into a configured Client."""
    options = config.to_client_options()
    options["method"] = args.method.upper()
    if args.insecure:
        options["verify_peer"] = False

    client = Client(args.url, options)

    for name, value in args.header or []:
        client.add_header(name, value)
    for name, value in args.data or []:
        client.add_data(name, value)
    if args.json is not None:
        client.set_type(Request.JSON)
        client.set_data(args.json)

    if args.user:
        username, _, password = args.user.partition(":")
        client.set_auth(Auth.create_basic(username, password))
    elif args.bearer:
        client.set_auth(Auth.create_bearer(args.bearer))

    return client


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Request URI")

    parser.add_argument(
        "--method", "-X",
        default="GET",
        help="Request method (default: GET)"
    )

    parser.add_argument(
        "--header", "-H",
        action="append",
        type=_parse_header,
        help="Request header, 'Name: value' (repeatable)"
    )

    parser.add_argument(
        "--data", "-d",
        action="append",
        type=_parse_field,
        help="Form field, 'name=value' (repeatable)"
    )

    parser.add_argument(
        "--json",
        default=None,
        help="Raw JSON body; sets the request type to JSON"
    )

    auth = parser.add_mutually_exclusive_group()
    auth.add_argument("--user", "-u", help="Basic auth credentials, 'user:password'")
    auth.add_argument("--bearer", help="Bearer token")

    parser.add_argument(
        "--insecure", "-k",
        action="store_true",
        help="Do not verify the peer certificate"
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpkit",
        description="HTTP client and curl command translator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpkit to-command http://localhost:8000/post -X POST -d foo=bar
  python -m httpkit from-command 'curl -X GET "http://localhost:8000/"'
  python -m httpkit send http://localhost:8000/api
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: HTTPKIT_LOG_LEVEL or INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpkit {__version__}"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # ─────────────────────────────────────────────────────────────────────
    # COMMANDS
    # ─────────────────────────────────────────────────────────────────────

    to_command = commands.add_parser("to-command", help="Print the curl command for a request")
    _add_request_arguments(to_command)

    from_command = commands.add_parser("from-command", help="Print the request a curl command describes")
    from_command.add_argument("curl", help="The curl command, quoted as one argument")

    send = commands.add_parser("send", help="Send a request and print the response")
    _add_request_arguments(send)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns the process exit code: 0 on success, 1 on an httpkit error or
    an error response (for send).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = ClientConfig.from_env()
    if args.log_level:
        config.log_level = args.log_level

    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "to-command":
            print(build_client(args, config).to_curl_command())
        elif args.command == "from-command":
            print(command_to_request(args.curl).render())
        elif args.command == "send":
            response = build_client(args, config).send()
            print(response.render())
            return 1 if response.is_error() else 0
    except HttpError as e:
        logger.error("%s", e)
        print(f"httpkit: {e}", file=sys.stderr)
        return 1

    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
