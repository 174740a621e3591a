#!/usr/bin/env python3
"""
Create and deliver plots from Prometheus metrics.

Queries a Prometheus server for a range of a PQL query, renders the
series as a line chart and writes it to a file, stdout or a Slack channel.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from promplot.cli import installed_version, main


if __name__ == "__main__":
    sys.exit(main(version=installed_version()))
