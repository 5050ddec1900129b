"""appinst — descriptor-driven application build/install orchestrator."""

__version__ = "0.1.0"
