# CLI argument parsing for dcview
# Kept separate from main.py so the flags can be tested on their own

import argparse
import sys


class Tee:
    """Duplicate stdout/stderr to a file and the console."""
    def __init__(self, *files):
        self.files = files
    def write(self, data):
        for f in self.files:
            f.write(data)
    def flush(self):
        for f in self.files:
            f.flush()


def build_parser():
    p = argparse.ArgumentParser(
        description="Browse the filesystem of running containers, including nested (DinD) ones."
    )
    p.add_argument(
        "--container", "-c",
        dest="container",
        help="Container ID or name to browse",
    )
    p.add_argument(
        "--host",
        dest="host",
        default=None,
        help="DinD host container; --container is then resolved inside this host",
    )
    p.add_argument(
        "--ls",
        dest="ls_path",
        default=None,
        help="List a directory inside the container (e.g., /etc)",
    )
    p.add_argument(
        "--cat",
        dest="cat_path",
        default=None,
        help="Print a file from the container (e.g., /etc/passwd)",
    )
    p.add_argument(
        "--snapshot",
        dest="snapshot",
        default=None,
        help="Browse a saved filesystem archive (docker export output) instead of a live container",
    )
    p.add_argument(
        "--export",
        dest="export_file",
        default=None,
        help="Export the container filesystem to a tar file",
    )
    p.add_argument(
        "--inject",
        action="store_true",
        help="Inject the helper binary into the container and exit",
    )
    p.add_argument(
        "--tui",
        action="store_true",
        help="Launch the interactive file browser",
    )
    p.add_argument(
        "--api", "-A",
        action="store_true",
        help="Start the API server (uvicorn on 127.0.0.1:8000)",
    )
    p.add_argument(
        "--log-file", "-l",
        dest="log_file",
        help="Path to save a complete log of output",
    )
    p.add_argument(
        "--simple-output",
        action="store_true",
        help="Print names only instead of ls -la style",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log runtime commands and fallbacks (DEBUG)",
    )
    return p


def parse_args(argv=None):
    p = build_parser()
    args = p.parse_args(argv)

    # Show help if no mode selected
    if not any([args.ls_path, args.cat_path, args.export_file, args.inject, args.tui, args.api]):
        p.print_help()
        sys.exit(0)

    needs_container = args.export_file or args.inject or (
        (args.ls_path or args.cat_path or args.tui) and not args.snapshot
    )
    if needs_container and not args.container:
        p.error("--container is required unless browsing a --snapshot")
    if args.host and not args.container:
        p.error("--host needs --container (the nested container inside the host)")
    return args
