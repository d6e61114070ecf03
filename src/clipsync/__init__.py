"""clipsync: keep a local cache of trimmed audio clips in sync with a remote catalog."""

__version__ = "0.1.0"
