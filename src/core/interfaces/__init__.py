"""Core interfaces.

Protocols implemented by adapters, so services depend on contracts and tests
can swap in recording fakes.
"""
