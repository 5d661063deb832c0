#!/usr/bin/env python3
"""Walk the stoma triage questionnaire in-process and print an audit log.

Drives a :class:`TriageSession` from the emergency screening question to a
final result, printing every question, its options, the chosen answer and
the provisional diagnosis label.  No server or database is needed.

By default answers are **randomised** so each run explores a different
path.  ``--answers`` fixes the answer indices instead, and ``--back`` makes
the walk step back once at a random point to exercise history restore.

Usage::

    # Random walk for classification 2
    python scripts/simulate_triage.py -c 2

    # Reproducible: every classification, 5 walks each
    python scripts/simulate_triage.py --all -n 5 --seed 42

    # Fixed answers: "no" to both emergency questions, then option 0
    python scripts/simulate_triage.py -c 1 --answers 1,1,0

    # Show the content graph summary and exit
    python scripts/simulate_triage.py --summary
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.table import Table

# Allow running from a checkout without installing the package
_REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from stoma_triage.constants import CLASS_ENTRY_QIDS, CLASSIFICATION_NAMES  # noqa: E402
from stoma_triage.engine import TriageEngine  # noqa: E402
from stoma_triage.history import TriageSession  # noqa: E402
from stoma_triage.models import FinalResult, Question  # noqa: E402
from stoma_triage.risk import risk_level_to_label, risk_level_to_severity_tag  # noqa: E402
from stoma_triage.ruleset import TriageContentStore  # noqa: E402

# Safety limit on answers per walk; content validation bounds real walks
MAX_STEPS = 64

_RISK_STYLE = {"low": "green", "medium": "yellow", "high": "bold red"}

console = Console()


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def log_question(q: Question, provisional: str | None) -> None:
    label = f" [dim](provisional: {provisional})[/]" if provisional else ""
    console.print(f"\n [cyan][{q.qid}][/] {q.question}{label}")
    for i, opt in enumerate(q.options):
        console.print(f"     {i}. {opt.label}")


def log_answer(q: Question, index: int) -> None:
    console.print(f" [bold]→[/] {index}. {q.options[index].label}")


def log_result(r: FinalResult) -> None:
    tag = risk_level_to_severity_tag(r.risk_level)
    style = _RISK_STYLE[tag]
    console.print()
    console.rule(f"[{style}]{r.rid}: {r.diagnosis}")
    console.print(f"  Risk:   [{style}]{risk_level_to_label(r.risk_level)} ({tag})[/]")
    if r.description:
        console.print(f"  {r.description}")
    if r.advice:
        console.print(f"  [dim]Advice:[/] {r.advice}")
    if r.emergency_alert:
        console.print(f"  [bold red]ALERT:[/] {r.emergency_alert}")


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def run_walk(
    engine: TriageEngine,
    classification: int,
    rng: random.Random,
    *,
    answers: list[int] | None = None,
    step_back: bool = False,
) -> TriageSession:
    """Answer questions until the session finishes and return it."""
    session = TriageSession(engine, classification)
    console.rule(
        f"[bold]Classification {classification}: {CLASSIFICATION_NAMES[classification]}"
    )
    fixed = list(answers or [])
    back_at = rng.randint(1, 3) if step_back else None

    for step_no in range(MAX_STEPS):
        step = session.current
        if isinstance(step, FinalResult):
            break
        log_question(step, session.provisional_diagnosis)

        if back_at is not None and step_no == back_at and session.can_go_back:
            prev = session.back()
            console.print(f" [yellow]↩ back to {prev.qid}[/]")
            back_at = None
            continue

        index = fixed.pop(0) if fixed else rng.randrange(len(step.options))
        if not 0 <= index < len(step.options):
            console.print(f" [yellow]! answer {index} is out of range[/]")
        else:
            log_answer(step, index)
        session.answer(index)
    else:
        console.print(f"[red]Stopped after {MAX_STEPS} steps without a result[/]")
        return session

    log_result(session.result)
    return session


def print_summary(store: TriageContentStore) -> None:
    report = store.validate()
    table = Table(title="Triage content", show_lines=False)
    table.add_column("Group")
    table.add_column("Questions", justify="right")
    table.add_column("Results", justify="right")
    groups = dict.fromkeys(
        [q.group for q in store.questions.values()]
        + [r.group for r in store.results.values()]
    )
    for group in groups:
        table.add_row(
            group,
            str(len(store.questions_in_group(group))),
            str(len(store.results_in_group(group))),
        )
    console.print(table)
    console.print(f"  Longest walk: {report.max_depth} questions")
    if report.unreachable_questions:
        console.print(
            f"  [yellow]Unreachable questions:[/] {', '.join(report.unreachable_questions)}"
        )
    if report.unreachable_results:
        console.print(
            f"  [yellow]Unreachable results:[/] {', '.join(report.unreachable_results)}"
        )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate the stoma triage questionnaire in-process.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-c", "--classification",
        type=int, choices=sorted(CLASS_ENTRY_QIDS), default=None,
        help="Image classification code (default: random)",
    )
    parser.add_argument(
        "--all", action="store_true",
        help="Run every classification code",
    )
    parser.add_argument(
        "-n", "--runs", type=int, default=1,
        help="Walks per classification (default: 1)",
    )
    parser.add_argument(
        "--answers", type=str, default=None,
        help="Comma-separated answer indices; random once exhausted",
    )
    parser.add_argument(
        "--back", action="store_true",
        help="Step back once during each walk",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="RNG seed for reproducibility (default: current timestamp)",
    )
    parser.add_argument(
        "--ruleset-dir", type=str, default=None,
        help="Content directory (default: packaged rulesets/v1)",
    )
    parser.add_argument(
        "--summary", action="store_true",
        help="Print the content summary and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show SDK log output (fallback warnings, load info)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.ERROR,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    store = TriageContentStore(ruleset_dir=args.ruleset_dir)
    store.load()
    if args.summary:
        print_summary(store)
        return

    engine = TriageEngine(store)
    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    console.print(f"[dim]RNG seed: {seed}[/]")

    answers = [int(a) for a in args.answers.split(",")] if args.answers else None
    if args.all:
        codes = sorted(CLASS_ENTRY_QIDS)
    elif args.classification is not None:
        codes = [args.classification]
    else:
        codes = [rng.choice(sorted(CLASS_ENTRY_QIDS))]

    table = Table(title="Walks", show_lines=False)
    table.add_column("Class", width=6)
    table.add_column("Run", width=4)
    table.add_column("Answers", justify="right")
    table.add_column("Result")
    table.add_column("Risk")

    for code in codes:
        for run in range(1, args.runs + 1):
            session = run_walk(engine, code, rng, answers=answers, step_back=args.back)
            result = session.result
            if result is None:
                table.add_row(str(code), str(run), str(len(session.answers)), "[red]-[/]", "-")
                continue
            tag = risk_level_to_severity_tag(result.risk_level)
            table.add_row(
                str(code),
                str(run),
                str(len(session.answers)),
                f"{result.rid} {result.diagnosis}",
                f"[{_RISK_STYLE[tag]}]{tag}[/]",
            )

    console.print()
    console.print(table)


if __name__ == "__main__":
    main()
