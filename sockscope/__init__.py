"""
sockscope: cross-thread poster ID correlation

Surfaces groups of anonymous IDs that likely belong to the same poster by
comparing their posting history across discussion threads.
"""

__version__ = "0.1.0"

# Lazy imports to avoid loading scipy/scikit-learn on import
def __getattr__(name):
    if name == "params":
        from . import params
        return params
    elif name == "distance":
        from . import distance
        return distance
    elif name == "lookup":
        from . import lookup
        return lookup
    elif name == "correlate":
        from . import correlate
        return correlate
    elif name == "cluster":
        from . import cluster
        return cluster
    elif name == "pipeline":
        from . import pipeline
        return pipeline
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
