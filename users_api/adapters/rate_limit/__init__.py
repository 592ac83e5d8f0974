"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter`` only, so the in-memory
sliding-window log can later be swapped for a shared store without touching
the middleware.
"""
