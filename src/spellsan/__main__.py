"""Command line entry point for practicing and inspecting progress."""
import argparse
import asyncio
import logging
import random
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from spellsan.config import ensure_directories, settings
from spellsan.logging_config import setup_logging
from spellsan.models.base import SessionLocal, init_db
from spellsan.models.progress_models import PracticeMode
from spellsan.monitoring import start_monitoring
from spellsan.services.achievements import achievements, recent_sessions
from spellsan.services.corpus import load_corpus
from spellsan.services.practice_session import PracticeSession
from spellsan.services.progress_service import ProgressService
from spellsan.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)


def build_service() -> ProgressService:
    """Create the progress service on the configured database."""
    init_db()
    return ProgressService(ProgressStore(SessionLocal))


def show_stats(service: ProgressService, corpus: List[str]) -> None:
    record = service.load_progress()
    print(f"Words learned:     {len(record.words_learned)} of {len(corpus)}")
    print(f"Difficult words:   {len(record.difficult_words)}")
    print(f"Current streak:    {record.streak} day(s)")
    print(f"Average accuracy:  {record.average_accuracy}%")
    print(f"Practice sessions: {record.total_practice_sessions} ({record.practice_today} today)")
    if record.last_practice_date:
        print(f"Last practice:     {record.last_practice_date:%Y-%m-%d}")

    print("\nAlphabet progress:")
    for letter in service.alphabet_progress(corpus):
        if letter.total_words:
            print(f"  {letter.letter}: {letter.learned_words}/{letter.total_words} ({letter.progress}%)")

    print("\nAchievements:")
    for achievement in achievements(record):
        mark = "x" if achievement.achieved else " "
        print(f"  [{mark}] {achievement.title} - {achievement.description} ({achievement.progress:.0%})")

    sessions = recent_sessions(record)
    if sessions:
        print("\nRecent sessions:")
        for session in sessions:
            print(
                f"  {session.date:%Y-%m-%d %H:%M} {session.mode.value:<8} "
                f"{session.correct_answers}/{session.words_attempted} ({session.accuracy}%) "
                f"{session.duration} min"
            )


def scramble_word(word: str) -> str:
    """Shuffle the letters of a word so the result differs from it where possible."""
    if len(set(word.lower())) < 2:
        return word
    while True:
        scrambled = "".join(random.sample(word, len(word)))
        if scrambled.lower() != word.lower():
            return scrambled


def _start_line_reader(loop: asyncio.AbstractEventLoop) -> "asyncio.Queue[str]":
    """Feed console lines into a queue from a daemon thread."""
    lines: "asyncio.Queue[str]" = asyncio.Queue()

    def read_lines() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(lines.put_nowait, line)

    threading.Thread(target=read_lines, name="console-reader", daemon=True).start()
    return lines


async def run_practice(
    service: ProgressService, corpus: List[str], mode: PracticeMode, letter: Optional[str]
) -> None:
    """Run an interactive practice session on the console."""
    words = service.select_practice_set(corpus, mode, letter)
    if not words:
        print("No words available for this selection.")
        return

    loop = asyncio.get_running_loop()
    session = PracticeSession(service, words, mode, letter)
    stop_event = asyncio.Event()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)
    lines = _start_line_reader(loop)

    print(f"Spell {len(words)} words. Press Ctrl+C to stop.")
    word = await session.start()
    try:
        while word is not None and not stop_event.is_set():
            print(f"\nWord {session.attempted + 1} of {len(words)}: {scramble_word(word).upper()}")
            print("Your spelling: ", end="", flush=True)
            answer_task = asyncio.ensure_future(lines.get())
            stop_task = asyncio.ensure_future(stop_event.wait())
            done, _ = await asyncio.wait(
                {answer_task, stop_task},
                timeout=session.word_time_limit,
                return_when=asyncio.FIRST_COMPLETED,
            )
            answer_task.cancel()
            stop_task.cancel()
            if stop_task in done:
                break
            if answer_task in done:
                if session.submit_answer(answer_task.result()):
                    print("Correct! Well done!")
                else:
                    print(f"Incorrect. The correct spelling is: {word}")
            else:
                session.time_up()
                print(f"\nTime's up! The correct spelling is: {word}")
            word = session.next_word()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        record = await session.stop()

    if session.attempted:
        print(f"\nFinal score: {session.correct}/{session.attempted}")
    if record is not None:
        print(f"Current streak: {record.streak} day(s)")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="spellsan", description="Spelling practice progress")
    parser.add_argument("--words", type=Path, default=settings.practice.corpus_file,
                        help="Word list, one word per line")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("stats", help="Show progress summary")

    practice = subparsers.add_parser("practice", help="Practice spelling on the console")
    practice.add_argument("--mode", choices=[mode.value for mode in PracticeMode],
                          default=PracticeMode.RANDOM.value)
    practice.add_argument("--letter", help="Starting letter for alphabet mode")

    export = subparsers.add_parser("export", help="Export progress as JSON")
    export.add_argument("file", nargs="?", type=Path, help="Output file (stdout if omitted)")

    import_ = subparsers.add_parser("import", help="Import progress from a JSON export")
    import_.add_argument("file", type=Path)

    subparsers.add_parser("reset", help="Delete all progress")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    ensure_directories()
    setup_logging("Starting spellsan ...")
    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)

    service = build_service()

    if args.command == "export":
        document = service.export_progress()
        if args.file:
            args.file.write_text(document, encoding="utf-8")
            logger.info(f"Progress exported to {args.file}")
        else:
            print(document)
        return 0

    if args.command == "import":
        if not service.import_progress(args.file.read_text(encoding="utf-8")):
            print("Import failed: the file is not a valid progress export.")
            return 1
        print("Progress imported.")
        return 0

    if args.command == "reset":
        return 0 if service.reset_progress() else 1

    try:
        corpus = load_corpus(args.words)
    except OSError as e:
        logger.error(f"Could not read word list {args.words}: {e}")
        return 1

    if args.command == "stats":
        show_stats(service, corpus)
        return 0

    mode = PracticeMode(args.mode)
    if mode == PracticeMode.ALPHABET and not args.letter:
        print("Alphabet mode needs --letter.")
        return 2
    if args.letter and (len(args.letter) != 1 or not args.letter.isalpha()):
        print(f"--letter must be a single letter, got {args.letter!r}.")
        return 2
    asyncio.run(run_practice(service, corpus, mode, args.letter))
    return 0


if __name__ == "__main__":
    sys.exit(main())
