"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter``; the shipped implementation
keeps sliding windows in a shared Redis store and fails open when the store
cannot be reached.
"""
