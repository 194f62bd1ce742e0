"""Thin CLI entry point — runs the web API or prints an export command."""

import argparse
import logging
import shlex
import sys
from pathlib import Path

from clipstream.edits import parse_edits, parse_trim
from clipstream.editors.filters import audio_tempo, build_filters
from clipstream.errors import ClipStreamError
from clipstream.ffutil import export_command

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="clipstream",
        description="ClipStream — stream-only clip export: trim, crop, color, speed & text.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Launch the HTTP API")
    serve.add_argument("--port", type=int, default=3001, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    serve.add_argument("--scratch-root", type=Path, help="Directory for transient uploads")

    cmd = sub.add_parser("print-command", help="Print the ffmpeg command for an export")
    cmd.add_argument("video", type=Path, help="Input video file")
    cmd.add_argument("--start", type=float, required=True, help="Clip start (seconds)")
    cmd.add_argument("--end", type=float, required=True, help="Clip end (seconds)")
    cmd.add_argument("--edits", type=Path, help="Path to an edits JSON file")
    cmd.add_argument("--ffmpeg", type=str, default="ffmpeg", help="ffmpeg executable")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from clipstream.web import create_app
        app = create_app(scratch_root=args.scratch_root)
        logging.getLogger("clipstream").info(
            "ClipStream API: http://%s:%d", args.host, args.port
        )
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
        return

    try:
        edits = parse_edits(args.edits.read_text() if args.edits else {})
        trim = parse_trim({"startSec": args.start, "endSec": args.end})
    except ClipStreamError as e:
        print(f"Error: {e.message}" + (f" ({e.detail})" if e.detail else ""), file=sys.stderr)
        sys.exit(1)

    argv = export_command(
        args.video, trim, build_filters(edits), audio_tempo(edits), ffmpeg=args.ffmpeg
    )
    print(shlex.join(argv))
