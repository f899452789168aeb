"""
Main entry point for running a headless Balance Builder session.

A greedy autoplayer makes moves on a virtual clock, so a full 60 second
session runs instantly and reproducibly for a given seed.

Usage:
    python -m src.main
    python -m src.main config.yaml --seed 7 --output results/run1.json --verbose
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from .environment import (
    BalanceBuilder,
    FileTutorialStore,
    GameConfig,
    InMemoryTutorialStore,
    JsonlLeadService,
    LoggingLeadService,
    ManualScheduler,
    RecordingFeedback,
    load_config,
)
from .environment.models import EXITED, FINISHED, INPUT_PHASES, RESULT
from .match_engine import find_matches, render_grid, swap_tiles
from .match_engine.models import Grid
from .match_engine.swap import find_valid_swaps


logger = logging.getLogger(__name__)


def pick_move(grid: Grid) -> Optional[Tuple[int, int, int, int]]:
    """Greedy choice: the legal swap that clears the most cells right away."""
    best = None
    best_size = 0
    for swap in find_valid_swaps(grid):
        size = len(find_matches(swap_tiles(grid, *swap)))
        if size > best_size:
            best, best_size = swap, size
    return best


def run_session(
    bench: BalanceBuilder,
    scheduler: ManualScheduler,
    think_time: float = 1.0,
    max_moves: Optional[int] = None,
    exit_after: Optional[int] = None,
    verbose: bool = False,
) -> None:
    """
    Play until the session leaves play, then wait for the result screen.

    Args:
        bench: A session already past the entry form
        scheduler: The virtual clock driving the session's timers
        think_time: Virtual seconds spent before each move
        max_moves: Stop making moves after this many (the clock keeps running)
        exit_after: Abandon the session after this many moves
        verbose: Print the board after every move
    """
    config = bench.config

    while bench.state.phase in INPUT_PHASES:
        moves = bench.state.moves

        if exit_after is not None and moves >= exit_after:
            bench.exit_game()
            break

        scheduler.advance(think_time)
        if bench.state.phase not in INPUT_PHASES:
            break

        swap = None if (max_moves is not None and moves >= max_moves) else pick_move(bench.state.grid)
        if swap is None:
            continue

        outcome = bench.request_swap(*swap)
        while bench.pending_steps:
            scheduler.advance(config.step_delay)
            bench.next_step()

        if verbose:
            print(f"\nMove {bench.state.moves}: {swap} -> {len(outcome.steps)} step(s), +{outcome.total_points}")
            print(render_grid(bench.state.grid))
            print(f"Buckets: {bench.state.buckets}  Time left: {bench.state.time_remaining}s")

    if bench.state.phase in (FINISHED, EXITED):
        scheduler.advance(max(config.finish_delay, config.exit_delay))

    if bench.state.phase != RESULT:
        logger.warning("Session ended in phase %s", bench.state.phase)


def main():
    parser = argparse.ArgumentParser(
        description="Run a headless Balance Builder session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example config.yaml:
  seed: 42
  game_duration: 60
  bucket_max: 100
  scoring:
    match3: 10
    match4: 20
    match5: 30
    combo_bonus: 5
    cascade_bonus: 10
        """
    )
    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file (defaults are used without one)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed (overrides the config file)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Path to save results JSON (default: results/<timestamp>.json)"
    )
    parser.add_argument(
        "--leads",
        help="Append lead submissions to this JSONL file"
    )
    parser.add_argument(
        "--tutorial-file",
        help="JSON file remembering whether the tutorial was seen"
    )
    parser.add_argument("--name", default="Demo Player", help="Player name for the entry form")
    parser.add_argument("--contact", default="0000000000", help="Player contact for the entry form")
    parser.add_argument(
        "--max-moves",
        type=int,
        help="Stop moving after this many swaps and let the clock run out"
    )
    parser.add_argument(
        "--exit-after",
        type=int,
        help="Abandon the session after this many swaps"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print the board after every move and log at DEBUG level"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else GameConfig()
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.seed is not None:
        config = config.model_copy(update={"seed": args.seed})

    if args.output:
        output_path = Path(args.output)
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = Path("results") / f"session_{timestamp}.json"

    scheduler = ManualScheduler()
    bench = BalanceBuilder.create(
        config=config,
        scheduler=scheduler,
        lead_service=JsonlLeadService(args.leads) if args.leads else LoggingLeadService(),
        tutorial_store=FileTutorialStore(args.tutorial_file) if args.tutorial_file else InMemoryTutorialStore(),
        feedback=RecordingFeedback(),
    )

    bench.submit_entry(args.name, args.contact)
    bench.start_game()

    if args.verbose:
        print(f"Phase: {bench.state.phase}")
        print(render_grid(bench.state.grid))

    try:
        run_session(
            bench,
            scheduler,
            max_moves=args.max_moves,
            exit_after=args.exit_after,
            verbose=args.verbose,
        )
    except KeyboardInterrupt:
        print("\nSession interrupted by user")

    bench.save_result(output_path)
    result = bench.get_result()

    if args.verbose:
        print()
        print(f"Results saved to: {output_path}")

    # Print summary
    print()
    print("=== Session Summary ===")
    print(f"Final score: {result.final_score}/100")
    print(f"Buckets: {result.buckets}")
    print(f"Moves: {result.moves}")
    print(f"Phases: {' -> '.join(result.phase_history)}")
    print(f"Won: {result.won}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
