"""
Streamline editor core.

Assemble Map and Store modules into a graph, compile the graph to a
script, evaluate it, and stream blocks back into the evaluation context.
"""

__version__ = "0.1.0"
