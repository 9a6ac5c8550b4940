"""Graph Validation Service: data-quality checks over a SPARQL graph store.

The package runs a catalog of validation rules against the configured
application graph, tracks each run (an execution) and each rule evaluation
(a validation), and writes one error record per violation found.
"""

__all__ = [
    "__version__",
]

__version__ = "0.3.0"
