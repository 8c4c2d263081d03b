"""Multi-cluster kubectl: run one operation against every managed cluster."""

__version__ = "0.1.0"
