#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Edit PPTX decks from plain-language requests with GPT + python-pptx.

- "Spanish", "translate this slide to German"
- 'Replace "OldCorp" with "NewCorp"'
- "make the text more engaging"
- "undo" (or --undo) reverts the last change made to the output file; the
  output deck is the one edited when it already exists.

Requires:
  pip install openai python-pptx tqdm tenacity python-dotenv requests
  export OPENAI_API_KEY=...
  export DEEPL_API_KEY=...   # optional, used for translation when set

Example:
  python gpt_pptx_assistant.py deck.pptx "Translate everything to French" -o deck_fr.pptx
"""
import argparse
import logging
import os
import sys
from dataclasses import replace

from dotenv import load_dotenv

from pptx_assistant import (
    AssistantError,
    JsonSnapshotStore,
    Operation,
    OutcomeStatus,
    PptxDocument,
    SessionContext,
    SlideAssistant,
    load_settings,
)
from pptx_assistant.heuristics import match_undo_request

load_dotenv()


def trunc(s: str) -> str:
    return (s[:120] + "...") if len(s) > 120 else s


def write_log(path: str, result):
    report = result.report
    with open(path, "w", encoding="utf-8") as log_fh:
        log_fh.write(f"# {result.message.splitlines()[0] if result.message else ''}\n")
        if report is None:
            return
        for outcome in report.outcomes:
            log_fh.write(f"[{outcome.locator.key}] {outcome.status.value}")
            if outcome.detail:
                log_fh.write(f" ({outcome.detail})")
            if outcome.error:
                log_fh.write(f" error: {outcome.error}")
            log_fh.write("\n")
            log_fh.write(f"  SRC: {outcome.before!r}\n")
            if outcome.status == OutcomeStatus.SUCCESS:
                log_fh.write(f"  DST: {outcome.after!r}\n")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Translate, find & replace, or polish PPTX slides from a plain-language request."
    )
    ap.add_argument("input", help="Input .pptx path")
    ap.add_argument("request", nargs="?", default=None, help='What to do, e.g. "Spanish"')
    ap.add_argument("-o", "--output", default=None, help="Output .pptx path (default: overwrite input)")
    ap.add_argument("--undo", action="store_true", help="Revert the last change made to the output file")
    ap.add_argument("--slide", type=int, default=None, help="Current slide number (for 'this slide')")
    ap.add_argument(
        "--select",
        default=None,
        help="Comma-separated slide numbers or ranges to treat as selected (e.g., 1,3-5)",
    )
    ap.add_argument("--model", default=None, help="OpenAI model (e.g., gpt-4o, gpt-4o-mini)")
    ap.add_argument(
        "--api",
        default=None,
        choices=["chat", "responses"],
        help="OpenAI API to call",
    )
    ap.add_argument(
        "--temperature",
        type=float,
        default=None,
        help="Sampling temperature (omit to use the model's default)",
    )
    ap.add_argument("--batch-size", type=int, default=None, help="Elements per batch")
    ap.add_argument("--pause", type=float, default=None, help="Seconds to wait between batches")
    ap.add_argument("--log", default=None, help="File path to write a per-element change log")
    ap.add_argument("--dry_run", action="store_true", help="Preview changes without saving")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING - 10 * min(args.verbose, 2),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.undo and not args.request:
        ap.error("a request is required unless --undo is given")

    try:
        settings = load_settings()
    except AssistantError as exc:
        print(f"[ERROR] {exc}")
        return 2
    overrides = {
        "model": args.model,
        "api": args.api,
        "temperature": args.temperature,
        "batch_size": args.batch_size,
        "batch_pause": args.pause,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    output = args.output or args.input
    # Undo history belongs to the output file, so undo edits that deck.
    wants_undo = args.undo or (args.request and match_undo_request(args.request) is not None)
    source = output if wants_undo and os.path.exists(output) else args.input
    try:
        document = PptxDocument.open(source)
        if args.slide is not None:
            document.set_current_slide(args.slide)
    except AssistantError as exc:
        print(f"[ERROR] {exc}")
        return 2
    if args.select:
        if not document.select_slides(args.select):
            print("[WARN] Some slide identifiers in --select were invalid or out of range and have been ignored.")
        if not document.selection:
            print("[WARN] No valid slide numbers specified in --select; nothing is selected.")

    session = SessionContext.for_presentation(output, settings, JsonSnapshotStore(settings.state_dir))
    assistant = SlideAssistant.build(document, session, show_progress=not args.dry_run)
    if not session.api_key:
        print("[WARN] OPENAI_API_KEY is not set; only simple requests can be understood.")

    if args.undo:
        result = assistant.revert_last()
    else:
        result = assistant.route_request(args.request)

    print(result.message)
    if args.log:
        write_log(args.log, result)

    mutated = result.report is not None and result.report.total_mutated > 0
    undone = args.undo or (result.directive is not None and result.directive.operation == Operation.UNDO)
    changed = (undone and result.success) or mutated
    if args.dry_run:
        if result.report is not None:
            for outcome in result.report.outcomes:
                if outcome.status == OutcomeStatus.SUCCESS:
                    print(f"[{outcome.locator.describe()}]")
                    print("  SRC:", repr(trunc(outcome.before)))
                    print("  DST:", repr(trunc(outcome.after)))
        print("Dry-run complete. No file written.")
    elif changed:
        try:
            document.save(output)
        except OSError as exc:
            print(f"[ERROR] Could not save {output}: {exc}")
            return 1
        session.persist()
        print(f"Saved presentation to: {output}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
