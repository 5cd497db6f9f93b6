"""
py-heatmap: procedural heightfield generation and brush editing.
"""

__version__ = "0.1.0"
