"""Quiz domain services: session lifecycle, answers, scoring and results.

Everything here is transport-agnostic and is imported by the HTTP
blueprints and socket handlers, which only translate requests and errors.
"""
