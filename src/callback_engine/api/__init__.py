"""
HTTP adapter for the callback engine.
"""
