"""Research Digest - topic in, structured and summarized web research out."""

__version__ = "0.1.0"
