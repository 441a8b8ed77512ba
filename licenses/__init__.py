"""
Licenses module - License keys and the license lifecycle.

This module handles:
- License key generation, fingerprinting and masking
- License entity and status transitions
- Tier catalogue
- Client validation through the lifecycle engine
"""
