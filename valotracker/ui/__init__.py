"""
UI Module - Discord UI Components

Available components:
- TimelinePaginationView: Previous/Next navigation over a match timeline
"""
