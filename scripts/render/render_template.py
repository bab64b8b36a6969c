#!/usr/bin/env python3
"""
Render a template with state bindings from the command line.

Usage:
    # Render against a JSON file of state values
    python render_template.py --config engine.yaml --template "{hm-rpc.0.temp;round(1)} °C" --values states.json

    # Render with view/widget context and no config file
    python render_template.py --template "{view} / {wname}" --view main --wid w00001
"""

import sys
import os.path as o
import argparse
import logging

# Update path to root for script
sys.path.append(o.abspath(o.join(o.dirname(sys.modules[__name__].__file__), "../..")))

from src.file_utils import read_json
from src.vis_format import EngineContext, FormattingEngine


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a template with state bindings",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--template",
        type=str,
        required=True,
        help="Template text, e.g. \"{x.y;round(2)} kWh\""
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file with an 'engine' section"
    )

    parser.add_argument(
        "--values",
        type=str,
        help="Path to JSON file mapping state references to values"
    )

    parser.add_argument("--view", type=str, help="Current view name")
    parser.add_argument("--wid", type=str, help="Current widget id")
    parser.add_argument(
        "--widget_data",
        type=str,
        help="Path to JSON file with the current widget data record"
    )

    parser.add_argument(
        "--log_level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    return parser.parse_args()


def main():
    """Main entry point for the template renderer."""
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    context = EngineContext.from_yaml(args.config) if args.config else EngineContext()
    states = read_json(args.values) if args.values else {}
    widget_data = read_json(args.widget_data) if args.widget_data else None

    engine = FormattingEngine(context, states=states)
    print(engine.format_binding(
        args.template,
        view=args.view,
        wid=args.wid,
        widget_data=widget_data
    ))


if __name__ == "__main__":
    main()
