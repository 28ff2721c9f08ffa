"""Instance status and termination agent for Kubernetes."""

__version__ = "0.1.0"
