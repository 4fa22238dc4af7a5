"""Allow running the engine as: python -m updown_core.coordinator [--config path]."""

import argparse

from updown_core.coordinator.runner import main

parser = argparse.ArgumentParser(description="Up/down momentum signal engine")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(config_path=args.config)
