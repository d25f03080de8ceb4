"""Chicago crime arrest analysis: EDA charts and baseline arrest classifiers."""

__version__ = "1.0.0"
