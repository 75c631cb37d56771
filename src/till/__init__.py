"""TILL - receipt printing core for the point-of-sale desktop shell."""

__version__ = "0.1.0"
