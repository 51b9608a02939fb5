"""Run the minute-bar report pipeline end to end."""

import argparse
import sys

from ltc_report.config import load_config
from ltc_report.errors import PipelineError
from ltc_report.logging_setup import setup_logging
from ltc_report.pipeline import ReportPipeline


def main():
    parser = argparse.ArgumentParser(description="Run the LTC/USD minute-bar report pipeline.")
    parser.add_argument("--config", default="configs/config.yaml", help="Path to config YAML")
    parser.add_argument("--data", default="", help="Override the input CSV path")
    parser.add_argument("--out", default="", help="Optional JSON report output path")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config)

    pipeline = ReportPipeline(config)
    try:
        result = pipeline.run_file(args.data or None)
    except (PipelineError, OSError, ValueError) as exc:
        print(f"error: {type(exc).__name__} in stage {pipeline.failed_stage}: {exc}", file=sys.stderr)
        return 1

    print("rows:", len(result.series))
    print("train/test:", result.split.train_size, result.split.test_size)
    print("model:", result.model.label)
    for name, value in result.accuracy.items():
        print(f"{name}:", value)

    out = args.out or config.get("output", {}).get("report_path", "")
    if out:
        pipeline.save_report(result, out)
        print("saved_report:", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
