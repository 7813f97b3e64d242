"""PWA backend: accounts, content stubs and web push dispatch."""

__version__ = "2.0.0"
