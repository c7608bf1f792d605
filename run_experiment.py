#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Runner for the GRU sentiment pipeline, from the project root.

Examples:
    python run_experiment.py train --csv data/reviews.csv --out sentiment-model.json --results-dir results
    python run_experiment.py evaluate --model sentiment-model.json --csv data/reviews.csv
    python run_experiment.py predict --model sentiment-model.json "The food was great"
"""

import sys

from gru_sentiment.cli import main

if __name__ == "__main__":
    sys.exit(main())
