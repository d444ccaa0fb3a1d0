"""Voice-driven chat router: speech transcript in, spoken model reply out."""

__version__ = "0.1.0"
