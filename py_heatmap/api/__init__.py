"""
HTTP API for heightfield sessions.
"""
