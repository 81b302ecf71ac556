"""
Security module: JWT verification, role checks, rate limiting.
"""
