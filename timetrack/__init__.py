"""
Legal Time Tracking Service
===========================

Billable-time tracking for law firms:
1. Cases and time logs kept in a hosted relational store
2. Billable-hours aggregation per case, status and period
3. CSV exports for a period, an attorney or a single case
"""

__version__ = "1.0.0"
