"""
Reconciliation and aggregation core for freight operations.

Links cost entries to freights, decides which freights can still be paid,
derives financial roll-ups and buckets records into calendar periods.
"""

__version__ = "0.1.0"
