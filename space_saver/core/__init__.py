"""Core conversion pipeline and its command-line host."""
