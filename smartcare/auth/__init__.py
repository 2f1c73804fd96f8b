"""
Session module for the clinician dashboard.

This module provides:
- The session manager reconciling identity and doctor profile
- Two-phase signup with a recoverable partial failure
- Sign-in and sign-out
- Access gating dependencies for public and protected views
"""
