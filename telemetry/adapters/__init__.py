"""Infrastructure adapters.

Adapters implement protocols defined in core/protocols/.
Each adapter wraps one analytics backend (PostHog) or is a test fake.
"""
