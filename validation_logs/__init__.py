"""
Validation logs module - Append-only record of client requests.

This module handles:
- Validation log entries and filters
- Failure statistics and suspicious IP detection
- Retention pruning
"""
