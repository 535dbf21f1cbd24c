"""Outer surface of the engine: wire schemas and the session facade."""
