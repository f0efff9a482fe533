"""
Command line entry point.

    python -m carstats report [-o FILE] [--figures DIR]
    python -m carstats fit "mpg ~ wt + I(hp/wt)" [--anova] [--diagnostics]
    python -m carstats compare [--proposed FORMULA]

All commands run against the built-in mtcars dataset.
"""

import argparse
import sys
from pathlib import Path

from carstats.core.exceptions import CarStatsError


def _cmd_report(args: argparse.Namespace) -> int:
    from carstats.report import build_report

    text = build_report(figures_dir=args.figures)
    if args.output is None:
        print(text)
    else:
        path = Path(args.output)
        path.write_text(text, encoding='utf-8')
        print(f"Report written to {path}")
    return 0


def _cmd_fit(args: argparse.Namespace) -> int:
    from carstats.anova import anova_table
    from carstats.datasets import load_mtcars
    from carstats.regression import lm

    solution = lm(args.formula, load_mtcars())
    print(solution.summary())
    print()
    print(solution.conf_int(args.level).to_string(float_format=lambda v: f"{v:.5f}"))
    if args.anova:
        print()
        print(anova_table(solution).summary())
    if args.diagnostics:
        diag = solution.diagnostics()
        print()
        print(diag.to_dataframe().to_string(float_format=lambda v: f"{v:.4f}"))
        influential = diag.influential_observations()
        print(f"\nInfluential (Cook's D > {diag.cooks_threshold:.3f}): "
              f"{', '.join(influential) if influential else 'none'}")
    return 0


def _cmd_compare(args: argparse.Namespace) -> int:
    from carstats.datasets import load_mtcars
    from carstats.report import CANDIDATES, PROPOSED
    from carstats.selection import compare_candidates

    candidates = list(CANDIDATES)
    proposed = args.proposed or PROPOSED
    if proposed not in candidates:
        candidates.append(proposed)
    table = compare_candidates(load_mtcars(), candidates, proposed=proposed)
    print(table.summary())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='carstats',
        description='Regression analysis of fuel economy in the mtcars dataset',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    p_report = sub.add_parser('report', help='Build the Markdown report')
    p_report.add_argument(
        '-o', '--output',
        default=None,
        help='Write the report to FILE instead of stdout',
    )
    p_report.add_argument(
        '--figures',
        default=None,
        metavar='DIR',
        help='Render figures as PNG files into DIR and link them',
    )
    p_report.set_defaults(func=_cmd_report)

    p_fit = sub.add_parser('fit', help='Fit one formula and print its summary')
    p_fit.add_argument('formula', help='R-style formula, e.g. "mpg ~ wt + I(hp/wt)"')
    p_fit.add_argument('--level', type=float, default=0.95, help='Confidence level')
    p_fit.add_argument('--anova', action='store_true', help='Print the sequential ANOVA table')
    p_fit.add_argument('--diagnostics', action='store_true', help='Print per-observation diagnostics')
    p_fit.set_defaults(func=_cmd_fit)

    p_cmp = sub.add_parser('compare', help='Print the candidate comparison table')
    p_cmp.add_argument(
        '--proposed',
        default=None,
        metavar='FORMULA',
        help='Proposed model (added to the candidates if missing)',
    )
    p_cmp.set_defaults(func=_cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except CarStatsError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
