"""Hashing, address decoding, difficulty maths, TCP and JSON helpers for mining pools."""

__version__ = "0.9.9"

__all__ = [
    "codec",
    "difficulty",
    "jsonutil",
    "lookup3",
    "net",
    "sha2",
]