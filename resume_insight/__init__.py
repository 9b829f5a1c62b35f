"""HTTP service that stores résumés and analyses them against job descriptions with an LLM."""

__version__ = "0.1.0"
__all__ = ["__version__"]