"""clusterscope - read path of the cluster monitoring backend."""

__version__ = "0.1.0"
