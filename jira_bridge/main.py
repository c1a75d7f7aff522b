"""Command line entry point for the JIRA session bridge.

Offers the operations a CI administrator uses to check a JIRA setup:
resolving a user's email address, opening a session per configured site and
checking a SOAP URL.
"""

import argparse
import sys

from jira_bridge.config import ConfigurationError, get_site, get_sites, logger
from jira_bridge.display import configure_logging
from jira_bridge.type_definitions import LOG_LEVELS


def _resolve_email(args: argparse.Namespace) -> int:
    from jira_bridge.mail_resolver import resolve_email  # noqa: PLC0415

    email = resolve_email(args.user)
    if email is None:
        logger.error("No email address found for %s", args.user)
        return 1
    print(email)
    return 0


def _check_site(args: argparse.Namespace) -> int:
    if args.name:
        site = get_site(args.name)
        if site is None:
            logger.error("No JIRA site named %s is configured", args.name)
            return 1
        sites = [site]
    else:
        sites = get_sites()

    if not sites:
        logger.warning("No JIRA sites configured")
        return 1

    failed = 0
    for site in sites:
        session = site.get_session()
        if session is None:
            logger.error("Site %s (%s): unable to connect", site.name, site.url)
            failed += 1
        else:
            logger.success("Site %s (%s): connected via %s", site.name, site.url, session.backend)
    return 1 if failed else 0


def _check_url(args: argparse.Namespace) -> int:
    from jira_bridge.clients.url_check import check_soap_url  # noqa: PLC0415

    result = check_soap_url(args.url)
    if result.ok:
        logger.success("%s: %s", args.url, result.message)
        return 0
    logger.error("%s: %s", args.url, result.message)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira-bridge",
        description="Query and check JIRA sites through the SOAP or REST backend",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve-email", help="Print the email address of a JIRA user")
    resolve.add_argument("user", help="JIRA user name")
    resolve.set_defaults(handler=_resolve_email)

    check_site = subparsers.add_parser("check-site", help="Open a session to configured sites")
    check_site.add_argument("name", nargs="?", help="Site name (default: all sites)")
    check_site.set_defaults(handler=_check_site)

    check_url = subparsers.add_parser("check-url", help="Check that a URL serves the JIRA SOAP API")
    check_url.add_argument("url", help="Base URL of the JIRA instance")
    check_url.set_defaults(handler=_check_url)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level)

    try:
        return args.handler(args)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
