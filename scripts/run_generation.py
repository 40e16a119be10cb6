#!/usr/bin/env python3
"""
Standalone generation script.
Loads draw history for a game and runs filtered generation, past-draw
analysis, auto-tune and/or combination reduction analysis.

Example:
    python scripts/run_generation.py lotto649 --sets 5 --tune --reduce
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from millionaire.analysis import build_profile
from millionaire.backtester import analyze_past_draws, auto_tune
from millionaire.config import API_URL, DATA_DIR, FilterConfig
from millionaire.errors import InsufficientHistory, PoolTooSmall
from millionaire.filters import build_context, get_board_stats, run_all_filters
from millionaire.games import GAMES, get_game
from millionaire.generator import generate_batch
from millionaire.reduction import estimate_reduction
from millionaire.repository import load_csv, load_draws


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Generate filtered lottery combinations")
    parser.add_argument("game", choices=sorted(GAMES), help="Game to generate for")
    parser.add_argument("--sets", type=int, default=None, help="Number of sets to generate")
    parser.add_argument("--pool-size", type=int, default=30)
    parser.add_argument("--strategy", choices=["dynamic", "frequency"], default="dynamic")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--api-url", default=API_URL)
    parser.add_argument("--offline", action="store_true", help="Use the cached CSV only")
    parser.add_argument("--analyze", action="store_true", help="Analyze the last 10 draws")
    parser.add_argument("--tune", action="store_true", help="Auto-tune before generating")
    parser.add_argument("--reduce", action="store_true", help="Run the reduction analysis")
    args = parser.parse_args(argv)

    game = get_game(args.game)
    print(f"Loading data for {game.game_id}...")
    if args.offline:
        df = load_csv(game, DATA_DIR)
    else:
        df = load_draws(game.game_id, api_url=args.api_url)
    print(f"Loaded {len(df)} draws")

    config = FilterConfig(pool_size=args.pool_size, pool_strategy=args.strategy)
    profile = build_profile(df, game, verbose=True)

    if args.analyze:
        try:
            analyze_past_draws(df, game, config, verbose=True)
        except InsufficientHistory as e:
            print(f"  [Analysis] {e}")

    if args.tune:
        try:
            config = auto_tune(df, game, config, verbose=True).config
        except InsufficientHistory as e:
            print(f"  [AutoTune] {e}")

    if args.sets is not None:
        config.num_sets = args.sets

    print(f"\n{'='*60}")
    print(f"FILTERED GENERATION - {config.num_sets} set(s)")
    print(f"{'='*60}")
    try:
        result = generate_batch(df, game, config, profile=profile, rng=args.seed, verbose=False)
    except PoolTooSmall as e:
        print(f"  {e}")
        return 1

    ctx = build_context(df, game, profile=profile)
    for i, combo in enumerate(result.combinations, 1):
        stats = get_board_stats(list(combo.main), game)
        checks = run_all_filters(combo.main, ctx, config)
        print(f"\nSet {i}: {combo}")
        print(f"  Sum: {stats['sum']} | Odd/Even: {stats['odd_even']} | "
              f"High/Low: {stats['high_low']} | Filters: {checks['confidence']}")
    if result.shortfall:
        print(f"\n(Could not generate all sets with the current filter settings: "
              f"{result.generated}/{result.requested})")

    if args.reduce:
        print(f"\n{'='*60}")
        print("COMBINATION REDUCTION ANALYSIS")
        print(f"{'='*60}")
        estimate_reduction(df, game, config, profile=profile, rng=args.seed, verbose=True)

    print(f"\n{'='*60}")
    print("DISCLAIMER: Lottery draws are random. No filter improves the odds")
    print("of any single combination. Play responsibly.")
    print(f"{'='*60}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
