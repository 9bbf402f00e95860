"""
MovieMonk - resilient multi-provider movie brief pipeline

Turns a free-text question about a movie, show or person into a
validated structured brief by resolving the entity first and then
walking a deterministic chain of LLM providers under a shared time
budget.
"""

__version__ = "0.1.0"
