"""Argument parsing functionality for pkgcost."""

import argparse

from constants import FailurePolicy


def _add_common_arguments(parser):
    """Flags shared by every subcommand."""
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help="npm registry base URL",
                        action="store",
                        type=str)
    parser.add_argument("--store-dir",
                        dest="STORE_DIR",
                        help="Directory holding stored package artifacts (<key>.zip)",
                        action="store",
                        type=str)
    parser.add_argument("--metadata-index",
                        dest="METADATA_INDEX",
                        help="YAML/JSON index of stored package records",
                        action="store",
                        type=str)
    parser.add_argument("--max-depth",
                        dest="MAX_DEPTH",
                        help="Do not expand dependencies deeper than this level",
                        action="store",
                        type=int)
    parser.add_argument("--max-units",
                        dest="MAX_UNITS",
                        help="Maximum number of distinct name@version units per query",
                        action="store",
                        type=int)
    parser.add_argument("--failure-policy",
                        dest="FAILURE_POLICY",
                        help="How unreachable dependencies affect totals (default: best_effort)",
                        action="store",
                        type=str.lower,
                        choices=[p.value for p in FailurePolicy])
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def build_parser():
    """Build the top-level parser with ``cost`` and ``serve`` subcommands."""
    parser = argparse.ArgumentParser(
        prog="pkgcost",
        description=(
            "pkgcost - installed size of a stored package and its npm dependencies"
        ),
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    cost = subparsers.add_parser("cost", help="Print the cost of one stored package as JSON")
    cost.add_argument("PACKAGE_ID",
                      help="Identifier of the package in the metadata index",
                      type=str)
    cost.add_argument("-d", "--dependencies",
                      dest="INCLUDE_DEPENDENCIES",
                      help="Include transitive dependency sizes",
                      action="store_true")
    cost.add_argument("-o", "--output",
                      dest="OUTPUT",
                      help="Write the JSON result to a file instead of stdout",
                      action="store",
                      type=str)
    _add_common_arguments(cost)

    serve = subparsers.add_parser("serve", help="Serve GET /package/{id}/cost over HTTP")
    serve.add_argument("--host",
                       dest="SERVER_HOST",
                       help="Bind address (default: 127.0.0.1)",
                       action="store",
                       type=str)
    serve.add_argument("--port",
                       dest="SERVER_PORT",
                       help="Bind port (default: 8080)",
                       action="store",
                       type=int)
    serve.add_argument("--allow-external",
                       dest="ALLOW_EXTERNAL",
                       help="Allow binding to a non-loopback address",
                       action="store_true")
    _add_common_arguments(serve)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
