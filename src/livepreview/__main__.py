"""CLI entry point: run `livepreview project/` or `python -m livepreview snapshot.json`."""

import logging
import sys
from pathlib import Path


def main(argv=None) -> int:
    import argparse
    from .compiler.session import PreviewSession
    from .preview.sandbox import SandboxPayload, render_error_html, render_preview_html
    from .shared.errors import ErrorReporter, LivePreviewError
    from .utils.io_utils import load_project, write_text_file

    parser = argparse.ArgumentParser(
        prog="livepreview",
        description="Build a live preview HTML document from a React project.",
    )
    parser.add_argument("project", type=Path, help="Project directory or JSON file system snapshot")
    parser.add_argument("--entry", default=None, help="Entry file (default: /App.jsx or the first .jsx/.tsx file)")
    parser.add_argument("--out", type=Path, default=None, help="Write the preview HTML here (default: stdout)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    path = args.project.resolve()
    if not path.exists():
        sys.stderr.write(f"livepreview: error: not found: {path}\n")
        return 1
    try:
        fs = load_project(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"livepreview: error: could not read project: {e}\n")
        return 1
    except LivePreviewError as e:
        sys.stderr.write(f"livepreview: error: could not load project: {e}\n")
        return 1

    session = PreviewSession(fs, entry_path=args.entry)
    result = session.refresh()
    snapshot = fs.snapshot()
    reporter = ErrorReporter(snapshot.files())

    if result is None:
        error = session.last_error
        reporter.report_exception(error)
        reporter.print_all()
        if args.out is not None:
            write_text_file(args.out, render_error_html(error))
        return 1

    for diagnostic in result.diagnostics:
        reporter.report_diagnostic(diagnostic)
    reporter.print_all()

    document = render_preview_html(SandboxPayload.from_build(result))
    if args.out is None:
        sys.stdout.write(document)
    else:
        write_text_file(args.out, document)
        sys.stderr.write(f"livepreview: wrote {args.out} ({len(result.registry.source_paths())} module(s))\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
