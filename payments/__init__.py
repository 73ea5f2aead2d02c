"""payments/ -- Thin client for the MoonPay crypto payments API.

Layer rule: payments/ imports from core/ and auth.errors only.
"""
