"""shipquote - shipping quote pipeline."""
__version__ = "1.0.0"
