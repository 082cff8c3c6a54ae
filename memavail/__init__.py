"""memavail: MemAvailable estimate for kernels that do not export it."""

__version__ = "0.1.0"
