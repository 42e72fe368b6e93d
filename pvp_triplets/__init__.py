"""
PvP Triplets - Exhaustive Team Search for PvP Metagames

Enumerates every 3-member team of a ranked meta pool, scores each one by
simulating its members against the rest of the pool, and reports the best.
"""

__version__ = "0.1.0"
