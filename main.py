#!/usr/bin/env python3
"""
main.py – `cascii-view` command line

    cascii-view <path>            add a frame folder, then open it
    cascii-view add <path>        same
    cascii-view list
    cascii-view delete <name>
    cascii-view --get <name>      open an installed project
    cascii-view serve             open the project list
    cascii-view play <name>       play in a native window
    cascii-view where | go        print the install directory
"""
from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from typing import List, Optional

from config import ViewerConfig, load_config
from errors import NotFound, ViewerError
from frame_source import make_source
from log import setup_logging
from preview_server import PreviewServer
from project_store import ProjectStore

log = logging.getLogger(__name__)

COMMANDS = ("add", "list", "delete", "serve", "play", "where", "go")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="cascii-view",
                                 description="A tool to view ASCII art animations.")
    ap.add_argument("--get", metavar="NAME", help="display a specific project")
    ap.add_argument("--no-open", action="store_true",
                    help="don't launch the browser, just print the URL")
    sub = ap.add_subparsers(dest="command")

    p = sub.add_parser("add", help="add a project folder (the default command)")
    p.add_argument("path")
    sub.add_parser("list", help="list all projects")
    p = sub.add_parser("delete", help="delete a project")
    p.add_argument("name")
    sub.add_parser("serve", help="serve the project list")
    p = sub.add_parser("play", help="play a project in a native window")
    p.add_argument("name")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--url", help="read frames from a running preview server")
    src.add_argument("--manifest", help="read frames from a showcase.json manifest")
    sub.add_parser("where", help="print the install directory")
    sub.add_parser("go", help="print the install directory (for cd \"$(cascii-view go)\")")
    return ap


def normalise_argv(argv: List[str]) -> List[str]:
    """A bare path is shorthand for `add <path>`."""
    for i, arg in enumerate(argv):
        if arg == "--get":
            return argv
        if arg.startswith("-"):
            continue
        if arg not in COMMANDS:
            return argv[:i] + ["add"] + argv[i:]
        return argv
    return argv


# ── serving ────────────────────────────────────────────────────────────────
def serve_and_open(cfg: ViewerConfig, store: ProjectStore,
                   project: Optional[str] = None, open_browser: bool = True) -> None:
    store.rebuild_index()
    server = PreviewServer(cfg, store)
    server.bind()
    print(f"🌐 CASCII Viewer server is running at {server.url}")

    url = server.project_url(project) if project else server.url
    if project:
        print(f"Opening project '{project}' in your browser.")
    if open_browser:
        webbrowser.open(url)
    else:
        print(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print()
    finally:
        server.shutdown()


# ── commands ───────────────────────────────────────────────────────────────
def cmd_add(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    ref = store.add(args.path, cfg.default_action)
    if ref.action == "none":
        print("Source path is already the installed project. Skipping transfer.")
    else:
        verb = "moved" if ref.action == "move" else "copied"
        print(f"Successfully {verb} project '{ref.name}'.")
    serve_and_open(cfg, store, ref.name, not args.no_open)
    return 0


def cmd_list(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    projects = store.list()
    if not projects:
        print("No projects found.")
        return 0
    print("Available projects:")
    for name in projects:
        print(f"- {name}")
    return 0


def cmd_delete(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    store.delete(args.name)
    print(f"Successfully deleted project '{args.name}'.")
    return 0


def cmd_get(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    if not store.exists(args.get):
        raise NotFound(f"Project '{args.get}' not found.")
    serve_and_open(cfg, store, args.get, not args.no_open)
    return 0


def cmd_serve(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    serve_and_open(cfg, store, None, not args.no_open)
    return 0


def cmd_play(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    source = make_source(store, url=args.url, manifest=args.manifest)
    if args.name not in source.list_projects():
        raise NotFound(f"Project '{args.name}' not found.")

    from app import ViewerApp      # pygame only loads for the native window
    ViewerApp(cfg, source).run(args.name)
    return 0


def cmd_where(cfg: ViewerConfig, store: ProjectStore, args) -> int:
    print(cfg.install_path)
    return 0


HANDLERS = {
    "add":    cmd_add,
    "list":   cmd_list,
    "delete": cmd_delete,
    "serve":  cmd_serve,
    "play":   cmd_play,
    "where":  cmd_where,
    "go":     cmd_where,
}


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(normalise_argv(argv))

    if not args.command and not args.get:
        parser.print_help()
        return 0

    try:
        cfg = load_config()
        setup_logging(cfg)
        store = ProjectStore(cfg)
        if args.get and not args.command:
            return cmd_get(cfg, store, args)
        return HANDLERS[args.command](cfg, store, args)
    except ViewerError as e:
        log.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
