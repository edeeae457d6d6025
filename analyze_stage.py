"""
Dependencies:
  - pandas
  - geopandas
  - shapely
  - pyproj
  - scipy

Usage:
  python3 analyze_stage.py --route "Stage Data/stages.geojson" --trace "Stage Data/car_1.csv"
  python3 analyze_stage.py --route stages.geojson --route-name "SS4" \
      --trace car_1.csv --trace car_7.csv --policy false_origin --interval 1000
"""

import argparse
import logging
from pathlib import Path

import pandas as pd

import stage_analysis as sa


def main():
    parser = argparse.ArgumentParser(
        description="Estimate notional split times along a rally stage from GPS telemetry"
    )
    parser.add_argument(
        "--route",
        type=str,
        required=True,
        help="Route collection file (GeoJSON or any format geopandas reads)"
    )
    parser.add_argument(
        "--route-name",
        type=str,
        default=None,
        help="Name of the route feature to use (default: first feature)"
    )
    parser.add_argument(
        "--trace",
        type=str,
        action="append",
        required=True,
        help="Telemetry CSV, newest row first; repeat for several drivers"
    )
    parser.add_argument(
        "--policy",
        type=str,
        default="rounded_start",
        choices=[p.value for p in sa.TimelinePolicy],
        help="Time origin policy (default: rounded_start)"
    )
    parser.add_argument(
        "--start",
        type=str,
        action="append",
        default=None,
        help="Start time per trace for the explicit policy, in --trace order"
    )
    parser.add_argument(
        "--tz",
        type=str,
        default=sa.DEFAULT_TIMEZONE,
        help=f"Timezone for naive start times (default: {sa.DEFAULT_TIMEZONE})"
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=sa.CORRIDOR_MARGIN_M,
        help=f"Corridor half-width in meters (default: {sa.CORRIDOR_MARGIN_M:g})"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=sa.SPLIT_INTERVAL_M,
        help=f"Notional split spacing in meters (default: {sa.SPLIT_INTERVAL_M:g})"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the split comparison table to this CSV"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline details"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    policy = sa.TimelinePolicy(args.policy)
    starts = args.start or []
    if policy is sa.TimelinePolicy.EXPLICIT and len(starts) != len(args.trace):
        parser.error("explicit policy needs one --start per --trace")

    print(f"Loading route from: {args.route}")
    route_points = sa.load_route_geojson(args.route, name=args.route_name)
    stage = sa.build_stage(route_points, margin_m=args.margin)
    print(f"Route: {stage.route.total_length:.0f} m in EPSG:{stage.epsg}")

    results = {}
    for idx, trace_path in enumerate(args.trace):
        driver = Path(trace_path).stem
        df = sa.load_trace_csv(trace_path)
        origin = starts[idx] if policy is sa.TimelinePolicy.EXPLICIT else None
        try:
            result = sa.process_trace(df, stage, policy=policy,
                                      explicit_origin=origin, tz=args.tz)
        except sa.StageAnalysisError as exc:
            print(f"  {driver}: skipped ({exc})")
            continue
        results[driver] = result
        print(f"  {driver}: {len(result.samples)} samples on stage, "
              f"{result.dropped_malformed} malformed, {result.dropped_off_stage} off stage, "
              f"{result.model.max_distance:.0f} m covered")

    if not results:
        raise SystemExit("No usable traces")

    if policy is sa.TimelinePolicy.FALSE_ORIGIN and len(results) > 1:
        results = sa.rebase_results(results)

    distances = sa.split_distances(stage.route.total_length, args.interval)
    table = sa.compare_split_times({k: r.model for k, r in results.items()}, distances)

    with pd.option_context("display.max_columns", None, "display.width", 120):
        print(f"\n{'='*60}")
        print(f"Notional splits every {args.interval:g} m")
        print(f"{'='*60}")
        print(table)

    if args.output:
        table.to_csv(args.output)
        print(f"Saved split table to: {args.output}")


if __name__ == "__main__":
    main()
