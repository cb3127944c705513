from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

from manuscript_reviser.changelog import render_diff_report, render_status_txt, write_json, write_txt
from manuscript_reviser.config import load_config
from manuscript_reviser.ir import AdvanceMode, Document, GuidanceKind, JobStatus, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    if path.lower().endswith(".docx"):
        from manuscript_reviser.adapters.docx_adapter import docx_to_text
        return docx_to_text(path)
    return Path(path).read_text(encoding="utf-8")


def _write_text(path: str, content: str) -> None:
    if path.lower().endswith(".docx"):
        from manuscript_reviser.adapters.docx_adapter import emit_docx
        from manuscript_reviser.diff.segmenter import segment
        emit_docx(segment(content), path)
        return
    Path(path).write_text(content, encoding="utf-8")


def _run_revise(args) -> int:
    from manuscript_reviser.adapters.storage import LocalFileStore
    from manuscript_reviser.analysis import AnalysisSet, load_analysis
    from manuscript_reviser.llm.client import CompletionStreamer
    from manuscript_reviser.revision.pipeline import RevisionPipeline

    config = load_config(args.config)
    if args.advance:
        config.advance_mode = AdvanceMode(args.advance)
    if args.model:
        config.llm.model = args.model

    kind = GuidanceKind(args.guidance)
    if kind is GuidanceKind.CUSTOM and not (args.custom or "").strip():
        logger.warning("Custom guidance selected without --custom text; the generic brief will be used")

    analysis = load_analysis(args.analysis) if args.analysis else AnalysisSet()
    store = LocalFileStore(args.root)
    pipeline = RevisionPipeline(store, CompletionStreamer(config.llm), analysis=analysis, config=config)

    def progress(status):
        if status.status is JobStatus.RUNNING and status.total_files:
            print(f"  [{status.current_index + 1}/{status.total_files}] {status.current_file_name}",
                  file=sys.stderr)

    pipeline.subscribe(progress)
    pipeline.start(args.files, kind, args.custom or "")

    try:
        while True:
            pipeline.wait_for(JobStatus.PAUSED, *TERMINAL_STATUSES)
            status = pipeline.status
            if status.status in TERMINAL_STATUSES:
                break
            answer = input(f"Saved revision of {status.current_file_name}. Continue? [Y/n] ")
            if answer.strip().lower() in ("n", "no", "q"):
                pipeline.cancel()
            else:
                pipeline.resume()
    except KeyboardInterrupt:
        pipeline.cancel()

    status = pipeline.wait()
    if args.status_file:
        write_txt(args.status_file, render_status_txt(status))
    print(json.dumps(status.to_dict(), indent=2))
    return 0 if status.status is JobStatus.COMPLETE else 1


def _run_diff(args) -> int:
    from manuscript_reviser.diff.alignment import compare_texts

    rows, stats = compare_texts(_read_text(args.left), _read_text(args.right))
    if args.json:
        payload = {
            "left": args.left,
            "right": args.right,
            "stats": stats.to_dict(),
            "rows": [r.to_dict() for r in rows],
        }
        if args.json == "-":
            print(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            write_json(args.json, payload)

    report = render_diff_report(rows, stats, Path(args.left).name, Path(args.right).name)
    if args.report:
        write_txt(args.report, report)
    elif not args.json:
        print(report)
    return 0


def _run_merge(args) -> int:
    from manuscript_reviser.diff.merge import MergeController

    left = Document(id=args.left, display_name=Path(args.left).name, content=_read_text(args.left))
    right = Document(id=args.right, display_name=Path(args.right).name, content=_read_text(args.right))
    merge = MergeController(left, right)

    if args.accept_all:
        merge.accept_all()
        changed = left
    else:
        merge.reject_all()
        changed = right

    if args.write:
        _write_text(changed.id, changed.content)
        logger.info(f"Wrote merged text to {changed.id}")

    print(json.dumps({
        "left": args.left,
        "right": args.right,
        "updated": changed.id,
        "written": bool(args.write),
        "remaining_changes": merge.stats.change_count,
    }, indent=2))
    return 0


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="manuscript-revise",
        description="AI-assisted chapter revision with side-by-side merge"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command")

    rv = sub.add_parser("revise", help="Revise chapters into numbered sibling files")
    rv.add_argument("files", nargs="+", help="Chapter paths relative to --root")
    rv.add_argument("--root", default=".", help="Manuscript folder")
    rv.add_argument(
        "--guidance", default="both",
        choices=[k.value for k in GuidanceKind],
        help="Guidance brief: checklist, gaps, both, or custom"
    )
    rv.add_argument("--custom", default="", help="Instructions for --guidance custom")
    rv.add_argument("--analysis", default=None, help="Analysis YAML (chapters, scores, checklist)")
    rv.add_argument("--advance", default=None, choices=[m.value for m in AdvanceMode],
                    help="auto: run straight through; pause: review after each chapter")
    rv.add_argument("--config", default=None, help="Config YAML")
    rv.add_argument("--model", default=None, help="Override the model name")
    rv.add_argument("--status-file", default=None, help="Write a text run summary here")

    df = sub.add_parser("diff", help="Paragraph-aligned comparison of two files")
    df.add_argument("left")
    df.add_argument("right")
    df.add_argument("--report", default=None, help="Write the markdown review report here")
    df.add_argument("--json", nargs="?", const="-", default=None,
                    help="Emit rows and stats as JSON (to stdout, or to the given path)")

    mg = sub.add_parser("merge", help="Take every change from one side into the other")
    mg.add_argument("left")
    mg.add_argument("right")
    side = mg.add_mutually_exclusive_group(required=True)
    side.add_argument("--accept-all", action="store_true", help="Make LEFT match RIGHT")
    side.add_argument("--reject-all", action="store_true", help="Make RIGHT match LEFT")
    mg.add_argument("--write", action="store_true", help="Save the updated file in place")

    args = ap.parse_args(argv)
    if not args.command:
        ap.error("a command is required (revise, diff or merge)")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "revise":
        return _run_revise(args)
    if args.command == "diff":
        return _run_diff(args)
    return _run_merge(args)


if __name__ == "__main__":
    sys.exit(main())
