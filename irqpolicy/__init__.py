"""irqpolicy - interrupt control policy compiler for firmware analysis."""

__version__ = "0.1.0"
