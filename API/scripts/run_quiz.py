#!/usr/bin/env python3
"""
Play one adaptive quiz session in the terminal against a running NeoLearn API.
Usage (from repo root): python API/scripts/run_quiz.py <user-id> <topic-id> "<topic title>" [--base-url URL]
Example: python API/scripts/run_quiz.py 7f1c... 2b9e... "Linear Equations"
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

from app.client.quiz_client import HttpQuizBackend  # noqa: E402
from app.core.difficulty import mastery_label  # noqa: E402
from app.core.errors import GenerationFailure  # noqa: E402
from app.orchestrator.session import QuizSession  # noqa: E402
from app.schemas.quiz import NO_CORRECTION  # noqa: E402


def _choose(options: list[str]) -> str:
    for idx, option in enumerate(options, start=1):
        print(f"  {idx}. {option}")
    while True:
        raw = input("Your answer (1-4): ").strip()
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return options[int(raw) - 1]
        print("Please pick one of the numbered options.")


async def _with_retry(call):
    while True:
        try:
            return await call()
        except GenerationFailure as exc:
            print(f"Failed to generate question: {exc}")
            if input("Try again? [Y/n] ").strip().lower() == "n":
                raise


async def _play(args: argparse.Namespace) -> int:
    finished: list[float] = []
    async with HttpQuizBackend(args.base_url) as backend:
        session = QuizSession(
            backend,
            user_id=args.user_id,
            topic_id=args.topic_id,
            topic_title=args.topic_title,
            on_complete=finished.append,
        )
        try:
            question = await _with_retry(session.start)
            while question is not None:
                print(f"\nQuestion {session.rounds_completed + 1} of {session.max_rounds} [{session.current_level}]")
                print(question.question)
                evaluation = await session.submit_answer(_choose(question.options))
                print(f"Score: {round(evaluation.score * 100)}% - {evaluation.feedback}")
                if evaluation.correction and evaluation.correction != NO_CORRECTION:
                    print(f"Correction: {evaluation.correction}")
                print(f"Mastery: {round(session.mastery * 100)}% ({mastery_label(session.mastery)})")
                try:
                    question = await session.advance()
                except GenerationFailure as exc:
                    print(f"Failed to generate question: {exc}")
                    if input("Try again? [Y/n] ").strip().lower() == "n":
                        raise
                    question = await _with_retry(session.request_question)
        except GenerationFailure:
            print("Quiz stopped.", file=sys.stderr)
            return 1

    print(f"\nQuiz complete. Final mastery: {round(finished[-1] * 100)}%")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Play an adaptive quiz session")
    parser.add_argument("user_id", help="Learner id")
    parser.add_argument("topic_id", help="Topic id")
    parser.add_argument("topic_title", help="Topic title used in prompts")
    parser.add_argument("--base-url", default="http://localhost:8000", help="NeoLearn API base URL")
    args = parser.parse_args()
    return asyncio.run(_play(args))


if __name__ == "__main__":
    raise SystemExit(main())
