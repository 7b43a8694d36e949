"""documenter-index: load and export documentation search-index artifacts."""

__version__ = "0.1.0"
