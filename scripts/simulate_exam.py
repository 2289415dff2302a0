#!/usr/bin/env python3
"""Simulate both assessment flows end-to-end with random answers.

Drives the guided exam through every visible question and the self-check
through every instruction page and chat, printing a rich audit table of
each question asked and the answer chosen, then the scored result.
History is kept in memory and discarded when the script exits.

Usage::

    # Both flows, random answers
    python scripts/simulate_exam.py

    # Reproducible run
    python scripts/simulate_exam.py --seed 7

    # Only the guided exam, answering "no" to everything
    python scripts/simulate_exam.py --flow exam --no-random
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path so the script runs from a plain checkout.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from selfexam_rulesets.catalog import CatalogStore  # noqa: E402
from selfexam_rulesets.context import AppContext  # noqa: E402
from selfexam_rulesets.models import (  # noqa: E402
    FlowStage,
    Question,
    RiskAssessmentResult,
)
from selfexam_rulesets.storage import MemoryKeyValueStore  # noqa: E402

_RISK_STYLE = {"low": "green", "moderate": "yellow", "high": "bold red"}


# ---------------------------------------------------------------------------
# Answer generation
# ---------------------------------------------------------------------------

def random_exam_answer(question: Question, rng: random.Random, randomise: bool) -> Any:
    """Pick an answer that fits the question type."""
    values = [opt.value for opt in question.options]
    if question.question_type == "boolean":
        # Mostly "no" so runs span all three tiers
        return randomise and rng.random() < 0.25
    if question.question_type == "multi_select":
        if not randomise:
            return []
        return rng.sample(values, k=rng.randint(0, len(values)))
    # quadrant
    return rng.choice(values) if randomise else values[0]


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def print_result(console: Console, title: str, result: RiskAssessmentResult) -> None:
    """Print a summary table for a scored assessment."""
    style = _RISK_STYLE[result.risk_level.value]
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Risk level", f"[{style}]{result.risk_level.value}[/{style}]")
    table.add_row("Score", f"{result.score:g} / {result.max_score:g}")
    table.add_row("Red flags", ", ".join(result.red_flags) or "(none)")
    table.add_row("Recommendation", result.recommendation.value)
    table.add_row("Next steps", "\n".join(result.next_steps_keys))
    console.print(table)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------

def simulate_exam(ctx: AppContext, console: Console, rng: random.Random, randomise: bool) -> None:
    exam = ctx.exam
    exam.start()

    table = Table(title="Guided exam", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Section")
    table.add_column("Question")
    table.add_column("Type")
    table.add_column("Answer")

    while True:
        question = exam.current_question
        section = exam.current_section
        if question is not None and section is not None:
            answer = random_exam_answer(question, rng, randomise)
            exam.record_answer(question.qid, answer)
            progress = exam.progress()
            table.add_row(
                f"{progress.current}/{progress.total}",
                section.id,
                question.qid,
                question.question_type,
                str(answer),
            )
        if not exam.advance():
            break

    console.print(table)
    print_result(console, "Exam result", exam.complete())


def simulate_self_check(ctx: AppContext, console: Console, rng: random.Random, randomise: bool) -> None:
    flow = ctx.self_check
    conversation = ctx.conversation
    flow.start()

    table = Table(title="Self-check", show_lines=False)
    table.add_column("Page", justify="right")
    table.add_column("Step")
    table.add_column("Question")
    table.add_column("Answer")

    while flow.stage is FlowStage.IN_PROGRESS:
        step = flow.current_step
        while flow.next_instruction():
            pass
        flow.enter_chat()

        while not conversation.is_complete:
            question = conversation.active_question
            if question is None:
                break
            if randomise:
                option = rng.choice(question.options)
            else:
                option = next((o for o in question.options if not o.is_concern), question.options[0])
            conversation.submit_reply(question.id, option.value)
            progress = flow.overall_progress()
            table.add_row(
                f"{progress.current}/{progress.total}",
                step.id if step is not None else "?",
                question.id,
                option.value,
            )
        flow.complete_step_chat()

    console.print(table)
    if flow.result is not None:
        print_result(console, "Self-check result", flow.result)


async def run_simulation(flow: str, seed: int | None, randomise: bool) -> None:
    console = Console()
    rng = random.Random(seed)

    catalog = CatalogStore()
    catalog.load()
    ctx = AppContext.build(catalog, MemoryKeyValueStore())
    await ctx.load_history()

    if flow in ("exam", "both"):
        simulate_exam(ctx, console, rng, randomise)
    if flow in ("self-check", "both"):
        simulate_self_check(ctx, console, rng, randomise)

    await ctx.flush()
    console.print(
        f"\nHistory: {len(ctx.exam_history)} exam, "
        f"{len(ctx.self_check_history)} self-check record(s)"
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate the guided exam and self-check flows with random answers.",
    )
    parser.add_argument(
        "--flow",
        choices=["exam", "self-check", "both"],
        default="both",
        help="Which flow to run (default: both)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run",
    )
    parser.add_argument(
        "--random",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Randomise answers (default: on). Use --no-random to answer no everywhere.",
    )
    args = parser.parse_args()

    asyncio.run(run_simulation(args.flow, args.seed, args.random))


if __name__ == "__main__":
    main()
