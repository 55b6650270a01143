"""kdebug: open a shell in a throwaway copy of a Kubernetes workload's pod."""

__version__ = "0.1.0"
