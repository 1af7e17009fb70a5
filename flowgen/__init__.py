"""
flowgen compiles visual node graphs (data edges + execution edges) into
Python source.

    from flowgen.compiler import compile_graph, load_graph
    from flowgen.registry import python_builtins
"""

__version__ = "0.1.0"
