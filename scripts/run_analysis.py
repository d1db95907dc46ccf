"""
Run the HVAC AI-control analysis on a dataset and write a JSON report.

Usage:
    python run_analysis.py --dataset data/filtered_dataset.csv --list-signals
    python run_analysis.py --dataset data/filtered_dataset.csv --signal VS1_GT1
    python run_analysis.py --dataset https://example.org/site.csv --signal VS1_GT1 --day-filter weekdays
    python run_analysis.py --dataset site.csv --category vs_vsgt --rollup month --output report.json
"""
import sys
import json
import logging
import argparse
from pathlib import Path
from datetime import datetime
from tqdm import tqdm

# Add src directory to path
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from hvac_analytics.core.config import (  # noqa: E402
    AnalysisConfig,
    AVERAGE_SIGNAL,
    DEFAULT_DATASET_SOURCE,
    DEFAULT_VIEW_DAYS,
    default_config,
    default_window,
)
from hvac_analytics.core.logging_setup import setup_pipeline_logger  # noqa: E402
from hvac_analytics.core.schema import records_to_dicts  # noqa: E402
from hvac_analytics.filtering.filters import DAY_FILTERS  # noqa: E402
from hvac_analytics.ingestion import DatasetCache, DatasetLoadError  # noqa: E402
from hvac_analytics.ingestion.signals import SIGNAL_CATEGORIES, get_category, signals_for_category  # noqa: E402
from hvac_analytics.metrics.savings import summarize_savings  # noqa: E402
from hvac_analytics.pipeline import AnalyticsPipeline  # noqa: E402


def _frame_records(frame) -> list:
    """DataFrame -> JSON-friendly records (NaN becomes None)."""
    cleaned = frame.astype(object).where(frame.notna(), None)
    return cleaned.to_dict(orient='records')


def load_dataset(source: str, quiet: bool = False) -> DatasetCache:
    """Parse the dataset once, reporting progress per chunk."""
    cache = DatasetCache(source)
    with tqdm(desc="Parsing rows", unit="row", disable=quiet, mininterval=1) as bar:
        def yield_point(rows_parsed: int):
            bar.update(rows_parsed - bar.n)
        cache.get_or_load(yield_point)
    return cache


def build_config(args, readings) -> AnalysisConfig:
    """Start from dataset defaults, then apply a config file and explicit flags."""
    config = default_config(readings)
    if args.config:
        config = AnalysisConfig.from_json(args.config)

    changes = {}
    if args.on_threshold:
        changes['on_threshold'] = tuple(args.on_threshold)
    if args.off_threshold:
        changes['off_threshold'] = tuple(args.off_threshold)
    if args.temperature_range:
        changes['temperature_range'] = tuple(args.temperature_range)
    if args.hour_range:
        changes['hour_range'] = tuple(args.hour_range)
    if args.min_samples is not None:
        changes['min_samples_threshold'] = args.min_samples
    if args.control_mode:
        changes['control_mode'] = args.control_mode
    return config.replace(**changes) if changes else config


def run_report(pipeline: AnalyticsPipeline, config: AnalysisConfig, signal: str,
               category_signals, day_filter: str, view_days: int, rollup: str) -> dict:
    """Run every view for one signal and collect it into a report dict."""
    readings = pipeline.readings
    window = default_window(readings, days=view_days)

    analysis = pipeline.get_temperature_analysis(config, signal, day_filter, category_signals)
    savings = pipeline.get_savings(config, signal, config.min_samples_threshold, window, category_signals)
    baseline = pipeline.get_baseline_series(window, signal, category_signals)
    comfort = pipeline.get_comfort_groups(window)
    availability = pipeline.get_signal_availability(config, signal, category_signals)

    metrics = analysis['metrics']
    return {
        'generated_at': datetime.now().isoformat(),
        'dataset': pipeline.cache.name,
        'signal': signal,
        'category_signals': list(category_signals or []),
        'day_filter': day_filter,
        'config': config.to_dict(),
        'window': {'start': window.start.isoformat(), 'end': window.end.isoformat()},
        'daily_distribution': records_to_dicts(pipeline.get_daily_distribution(config)),
        'bins': records_to_dicts(analysis['bins']),
        'metrics': metrics.to_dict() if metrics is not None else None,
        'signal_availability': {
            'daily': records_to_dicts(availability['daily']),
            'percentage': availability['percentage'],
        },
        'savings': {
            'daily': records_to_dicts(savings),
            'rollup': records_to_dicts(pipeline.get_savings_rollup(
                config, signal, config.min_samples_threshold, window, rollup, category_signals)),
            'summary': summarize_savings(savings),
        },
        'baseline': {
            'time_series': records_to_dicts(baseline['time_series']),
            'offline_periods': records_to_dicts(baseline['offline_periods']),
        },
        'comfort': {
            'groups': records_to_dicts(comfort['groups']),
            'time_series': _frame_records(comfort['time_series']),
            'stats': records_to_dicts(comfort['stats']),
        },
    }


def print_summary(report: dict):
    print("\n" + "=" * 60)
    print(f"SUMMARY: {report['signal']} ({report['day_filter']})")
    print("=" * 60)
    metrics = report['metrics']
    if metrics is None:
        print("No rows matched the configuration")
        return
    print(f"Reliable bins:        {metrics['reliable_bins_count']} / {len(report['bins'])}")
    print(f"Simple average diff:  {metrics['simple_average_diff']:.3f} "
          f"({metrics['simple_average_pct_diff']:.1f}%)")
    if metrics['weighted_average_diff'] is not None:
        print(f"Weighted diff:        {metrics['weighted_average_diff']:.3f} "
              f"({metrics['weighted_average_pct_diff']:.1f}%)")
    print(f"Uptime:               {metrics['uptime']:.1f}%")
    summary = report['savings']['summary']
    print(f"Savings ({summary['days']} days): actual {summary['total_actual']:.2f}, "
          f"potential {summary['total_potential']:.2f}, forfeited {summary['total_forfeited']:.2f}")


def main():
    setup_pipeline_logger('hvac_analytics')

    parser = argparse.ArgumentParser(description='Analyze HVAC AI-control impact')
    parser.add_argument('--dataset', type=str, default=DEFAULT_DATASET_SOURCE,
                        help='Dataset path or URL (default: $HVAC_DATASET or filtered_dataset.csv)')
    parser.add_argument('--list-signals', action='store_true', help='List available signals and exit')
    parser.add_argument('--signal', type=str, help='Signal to analyze (default: first available)')
    parser.add_argument('--category', type=str, choices=[c.id for c in SIGNAL_CATEGORIES],
                        help='Analyze the average of all signals in a category')
    parser.add_argument('--day-filter', type=str, default='all', choices=DAY_FILTERS)
    parser.add_argument('--config', type=str, help='AnalysisConfig JSON file')
    parser.add_argument('--on-threshold', type=float, nargs=2, metavar=('LOW', 'HIGH'))
    parser.add_argument('--off-threshold', type=float, nargs=2, metavar=('LOW', 'HIGH'))
    parser.add_argument('--temperature-range', type=float, nargs=2, metavar=('LOW', 'HIGH'))
    parser.add_argument('--hour-range', type=int, nargs=2, metavar=('LOW', 'HIGH'))
    parser.add_argument('--min-samples', type=int, default=None)
    parser.add_argument('--control-mode', type=str, choices=['intensity', 'split_by_dates'])
    parser.add_argument('--view-days', type=int, default=DEFAULT_VIEW_DAYS,
                        help='Days shown in the savings, baseline and comfort views')
    parser.add_argument('--rollup', type=str, default='week', choices=['week', 'month'])
    parser.add_argument('--output', type=str, help='Write the JSON report here instead of stdout')
    parser.add_argument('--quiet', action='store_true', help='No progress bar or summary')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    if args.verbose:
        setup_pipeline_logger('hvac_analytics', level=logging.DEBUG)

    try:
        cache = load_dataset(args.dataset, quiet=args.quiet)
    except DatasetLoadError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    pipeline = AnalyticsPipeline(cache)
    signals = pipeline.available_signals()

    if args.list_signals:
        print(f"\nAvailable signals ({len(signals)}):")
        for s in signals:
            print(f"  {s}")
        return

    category_signals = None
    if args.category:
        category_signals = signals_for_category(get_category(args.category), signals)
        if not category_signals:
            print(f"ERROR: No signals match category {args.category}")
            sys.exit(1)
        signal = AVERAGE_SIGNAL
    else:
        signal = args.signal or (signals[0] if signals else None)
        if signal is None:
            print("ERROR: Dataset has no signal columns")
            sys.exit(1)
        if signal not in signals:
            print(f"ERROR: Unknown signal {signal}; use --list-signals")
            sys.exit(1)

    try:
        config = build_config(args, pipeline.readings)
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(1)

    report = run_report(pipeline, config, signal, category_signals, args.day_filter,
                        args.view_days, args.rollup)

    if args.output:
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, 'w') as f:
            json.dump(report, f, indent=2, default=str)
        if not args.quiet:
            print(f"Report saved to: {args.output}")
            print_summary(report)
    else:
        json.dump(report, sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()
