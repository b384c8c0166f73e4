#!/usr/bin/env python
"""
Report Script

Builds the Olist review sentiment report (EDA, both classifiers, evaluation).

Usage:
    python scripts/run_report.py --data-dir data --output-dir reports
    python scripts/run_report.py --quick --nrows 20000  # Quick test
"""

import sys
from pathlib import Path

# Add src/ to path so the script runs without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_sentiment.pipeline import main


if __name__ == "__main__":
    sys.exit(main())
