# posyandu/__init__.py
"""
Posyandu examination wizard: the four-step visit recorder and its score engine.
"""

__version__ = "1.0.0"
