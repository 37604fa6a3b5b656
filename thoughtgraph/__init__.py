"""
ThoughtGraph - Structured reasoning chains and a persistent knowledge graph.

Example:
    >>> from thoughtgraph.domains.reasoning import ReasoningEngine
    >>> engine = ReasoningEngine()
    >>> chain = await engine.analyze("Why did the deploy fail?", depth=3)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
