"""Business logic services.

Services coordinate the stores and are called by routes.
They accept their store/cache/index dependencies explicitly.
"""
