"""Department workflow engine for a jewelry manufacturing floor."""

__version__ = "0.1.0"
