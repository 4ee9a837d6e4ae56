"""
grantmatch
==========

Deterministic matching of farm operators to grant opportunities: load a
grant catalog snapshot, filter it by hard eligibility rules, score the
survivors on weighted soft dimensions, and return a ranked, bounded result.
"""

__version__ = "0.3.0"

# Reported alongside match responses so clients can tell engine revisions apart
ENGINE_VERSION = 2
