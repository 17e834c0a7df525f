"""Core session primitives (event slots and status derivation).

Kept free of FastAPI and transport concerns so it can be reused by the
controller, the view bridge, and tests.
"""
