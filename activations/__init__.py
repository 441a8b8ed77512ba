"""
Activations module - Site activation management.

This module handles:
- Activation entity and site identity
- Activation quota allocation
- Site activation, deactivation and check-ins
"""
