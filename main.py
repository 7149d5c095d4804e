#  dcview main CLI: live and snapshot browsing, helper injection, API and TUI
#  Every filesystem call goes through FileAccess (live) or ArchiveIndex (snapshot)
import logging
import os
import sys

from dcview.config import load_config
from dcview.modules.access import FileAccess, LiveTarget, SnapshotTarget
from dcview.modules.cli import Tee, parse_args
from dcview.modules.errors import DcviewError
from dcview.modules.finders import ArchiveIndex, format_entry_line
from dcview.modules.formatters import human_readable_size
from dcview.modules.runtime import ContainerHandle


def configure_logging(level):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_handle(args, settings):
    if args.host:
        return ContainerHandle.nested(args.host, args.container, runtime=settings.runtime)
    return ContainerHandle.direct(args.container)


def print_listing(target, path, simple=False):
    entries = target.list_files(path)
    print(f"[*] {target.title}:{path}  ({len(entries)} entries)\n")
    for entry in entries:
        print(format_entry_line(entry, show_permissions=not simple))


def print_file(target, path):
    content = target.read_file(path)
    out = getattr(sys.stdout, "buffer", None)
    if out is not None:
        sys.stdout.flush()
        out.write(content)
        out.flush()
    else:
        sys.stdout.write(content.decode("utf-8", errors="replace"))


def choose_target(args, settings, access, handle):
    """Saved snapshot, fresh snapshot (TUI with initial_view = "snapshot"), or live."""
    if args.snapshot:
        print(f"[*] Loading snapshot {args.snapshot}")
        index = ArchiveIndex.from_file(args.snapshot)
        return SnapshotTarget(index, label=os.path.basename(args.snapshot))
    if args.tui and settings.initial_view == "snapshot":
        print(f"[*] Capturing snapshot of {handle.title}")
        return SnapshotTarget(access.snapshot(handle), label=handle.title)
    return LiveTarget(access, handle)


def run(args):
    settings = load_config()
    configure_logging(logging.DEBUG if args.verbose else settings.log_level)

    # --- API server mode ---
    if args.api:
        import uvicorn
        print("[*] Starting API server on http://127.0.0.1:8000/docs")
        uvicorn.run("dcview.modules.api.api:app", host="127.0.0.1", port=8000)
        return 0

    access = FileAccess(settings=settings)
    handle = build_handle(args, settings) if args.container else None

    # --- export mode: capture the container filesystem and exit ---
    if args.export_file:
        print(f"[*] Exporting {handle.title} to {args.export_file}")
        written = access.export_to_file(handle, args.export_file)
        print(f"[*] Wrote {human_readable_size(written)}")
        return 0

    # --- helper injection ---
    if args.inject:
        print(f"[*] Injecting helper into {handle.title}")
        helper_path = access.inject_helper(handle)
        print(f"[*] Helper installed at {helper_path}")
        return 0

    target = choose_target(args, settings, access, handle)

    if args.tui:
        from dcview.tui import DcviewApp
        DcviewApp(target).run()
        return 0

    if args.ls_path:
        print_listing(target, args.ls_path, simple=args.simple_output)
    if args.cat_path:
        print_file(target, args.cat_path)
    return 0


def main():
    args = parse_args()

    # set up logging/tee if requested
    if args.log_file:
        log_f = open(args.log_file, "w", encoding="utf-8")
        sys.stdout = Tee(sys.stdout, log_f)
        sys.stderr = Tee(sys.stderr, log_f)

    try:
        sys.exit(run(args))
    except DcviewError as e:
        print(f"[!] Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
