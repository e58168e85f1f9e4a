#!/usr/bin/env python3
"""
Check GDPR permissions for a bid request.

Usage:
    python run_check.py request.json --bidder appnexus
    python run_check.py request.json --bidder appnexus --bidder rubicon:rubi-alt
    python run_check.py request.json --bidder appnexus --tcf2-config tcf2.yaml
"""

import sys

from src.gdpr.cli import main

if __name__ == "__main__":
    sys.exit(main())
