"""
Licenses module - License code issuance, verification and lifecycle.

This module handles:
- License code generation, validation and masking
- License and AccessLog entities
- Verification with IP risk tracking, warnings and automatic locks
- Expiry sweeps and expiration reminders
"""
