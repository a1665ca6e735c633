#!/usr/bin/env python3
"""
Shut the Box Strategy Benchmark — Play N solo turns per strategy and rule set.

Usage: python ai_benchmark.py [--turns N] [--strategy NAME] [--max-tile N]
       python ai_benchmark.py --verbose --turns 500
       python ai_benchmark.py --csv --one-die never
"""
import argparse
import random
import statistics
import time

from ai import BestMoveStrategy, MostTilesStrategy, RandomStrategy, play_round
from game_engine import GameOptions, OneDieRule
from round_controller import RoundController


def benchmark_strategy(strategy, num_turns, options, start_seed=0):
    """Play num_turns single-player rounds and return remainders and elapsed time."""
    remainders = []
    t0 = time.perf_counter()
    for seed in range(start_seed, start_seed + num_turns):
        controller = RoundController(options=options, rng=random.Random(seed))
        play_round(controller, strategy)
        remainders.append(controller.players[0].last_score)
    elapsed = time.perf_counter() - t0
    return remainders, elapsed


def summarize(remainders):
    """Shut rate, mean and spread of a list of remainders."""
    ordered = sorted(remainders)
    n = len(ordered)
    return {
        "shut_rate": sum(1 for r in ordered if r == 0) / n,
        "avg": sum(ordered) / n,
        "stdev": statistics.stdev(ordered) if n >= 2 else 0.0,
        "median": statistics.median(ordered),
        "max": ordered[-1],
        "p25": ordered[n // 4],
        "p75": ordered[(3 * n) // 4],
    }


def print_results(name, remainders, elapsed, verbose=False):
    """Print one formatted result row (two with verbose=True)."""
    s = summarize(remainders)
    per_turn = elapsed / len(remainders) * 1000  # ms per turn
    print(f"  {name:32s}  shut={s['shut_rate']:6.1%}  avg={s['avg']:5.1f}  max={s['max']:3d}  "
          f"({len(remainders)} turns in {elapsed:.2f}s, {per_turn:.2f}ms/turn)")
    if verbose:
        print(f"  {'':32s}  stdev={s['stdev']:5.1f}  median={s['median']:4.0f}  "
              f"p25={s['p25']:3d}  p75={s['p75']:3d}")


def print_csv_header():
    print("strategy,one_die_rule,max_tile,turns,shut_rate,avg,stdev,median,max,p25,p75,elapsed_s")


def print_csv_row(name, rule, max_tile, remainders, elapsed):
    s = summarize(remainders)
    print(f"{name},{rule.value},{max_tile},{len(remainders)},{s['shut_rate']:.4f},"
          f"{s['avg']:.2f},{s['stdev']:.2f},{s['median']:.0f},{s['max']},"
          f"{s['p25']},{s['p75']},{elapsed:.2f}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Shut the Box Strategy Benchmark")
    parser.add_argument("--turns", type=int, default=1000,
                        help="Number of solo turns per strategy and rule (default: 1000)")
    parser.add_argument("--strategy", choices=["best", "random", "most_tiles"],
                        help="Run only a single strategy (default: all)")
    parser.add_argument("--one-die", choices=[r.value for r in OneDieRule],
                        help="Run only a single one-die rule (default: all)")
    parser.add_argument("--max-tile", type=int, default=12, choices=range(3, 13), metavar="N",
                        help="Highest tile on the board (default: 12)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show extra statistics (stdev, median, percentiles)")
    parser.add_argument("--csv", action="store_true",
                        help="Output results as CSV")
    args = parser.parse_args(argv)

    all_strategies = {
        "best": ("BestMove", BestMoveStrategy()),
        "random": ("Random", RandomStrategy(random.Random(0))),
        "most_tiles": ("MostTiles", MostTilesStrategy()),
    }
    strategies = [all_strategies[args.strategy]] if args.strategy else list(all_strategies.values())
    rules = [OneDieRule(args.one_die)] if args.one_die else list(OneDieRule)

    if args.csv:
        print_csv_header()
    else:
        print(f"Shut the Box Benchmark — {args.turns} turns per strategy, tiles 1-{args.max_tile}")
        print("=" * 96)

    for rule in rules:
        options = GameOptions(max_tile=args.max_tile, one_die_rule=rule)
        for name, strategy in strategies:
            remainders, elapsed = benchmark_strategy(strategy, args.turns, options)
            if args.csv:
                print_csv_row(name, rule, args.max_tile, remainders, elapsed)
            else:
                print_results(f"{name} / {rule.value}", remainders, elapsed, verbose=args.verbose)

    if not args.csv:
        print("=" * 96)


if __name__ == "__main__":
    main()
