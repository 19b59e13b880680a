#!/usr/bin/env python3
"""
Print per-reel odds and exact per-spin outcome odds across a range of
odds multipliers.
"""

import argparse

from slot_machine.core.catalog import default_catalog
from slot_machine.core.odds import OddsModel

MULTIPLIERS = (0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0)


def report(multipliers):
    model = OddsModel(default_catalog())

    print("🎰 Odds report")
    print("=" * 60)

    for multiplier in multipliers:
        model.set_odds_multiplier(multiplier)
        table = model.table
        outcomes = model.outcome_probabilities()

        print(f"\nx{multiplier}")
        print("-" * 60)
        for symbol, probability in table.probabilities().items():
            print(f"  {symbol}  weight={table[symbol]:7.2f}  reel odds={probability * 100:6.2f}%")

        print(f"  full match:    {outcomes['full_match'] * 100:6.3f}%")
        print(f"  partial match: {outcomes['partial_match'] * 100:6.3f}%")
        print(f"  no match:      {outcomes['no_match'] * 100:6.3f}%")
        print(f"  expected payout per spin: {outcomes['expected_payout']:.4f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Slot machine odds report")
    parser.add_argument("multipliers", nargs="*", type=float, default=MULTIPLIERS)
    args = parser.parse_args()
    report(args.multipliers)
