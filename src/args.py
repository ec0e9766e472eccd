"""Argument parsing functionality for cargo-download."""

import argparse
import sys

from constants import Constants, ExitCodes


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose errors exit with the usage exit code."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(ExitCodes.USAGE_ERROR.value, f"{self.prog}: error: {message}\n")


def build_parser():
    """Create the parser for the application's command line."""
    version = Constants.APP_VERSION or "<UNKNOWN VERSION>"
    parser = UsageArgumentParser(
        prog="cargo download",
        description="Download a crate's source archive from crates.io",
        add_help=True,
    )

    parser.add_argument("CRATE",
                        metavar="CRATE[=VERSION]",
                        help=(
                            "The crate to download. This can be just a crate name "
                            "(like \"foo\"), in which case the newest version of the "
                            "crate is fetched. Alternatively, the VERSION requirement "
                            "can be given after the equal sign (=) in the usual "
                            "Cargo.toml format (e.g. \"foo==0.9\" for the exact version)."
                        ))
    parser.add_argument("-x", "--extract",
                        dest="EXTRACT",
                        help=(
                            "Extract the crate's archive automatically. Unless changed "
                            "via --output, files go to a new subdirectory named after "
                            "the downloaded crate archive."
                        ),
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help=(
                            "Where to put the crate: a file for the archive, or the "
                            "directory to extract to with --extract. Use - for stdout "
                            "(the default without --extract)."
                        ),
                        action="store",
                        type=str)

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose",
                           dest="VERBOSE",
                           help="Increase logging verbosity",
                           action="count",
                           default=0)
    verbosity.add_argument("-q", "--quiet",
                           dest="QUIET",
                           help="Decrease logging verbosity",
                           action="count",
                           default=0)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level explicitly (overrides -v/-q)",
                        action="store",
                        type=str.upper,
                        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--registry-url",
                        dest="REGISTRY_URL",
                        help=f"Registry API root (default: {Constants.REGISTRY_URL_CRATES})",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"HTTP timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store",
                        type=float)
    parser.add_argument("-V", "--version",
                        action="version",
                        version=f"{Constants.APP_NAME} {version}")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.EXTRACT and args.OUTPUT == Constants.STDOUT_MARKER:
        parser.error("cannot extract the crate to standard output")
    args.VERBOSITY = args.VERBOSE - args.QUIET
    return args
