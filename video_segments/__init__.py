"""Video segments worker - turns remote videos into uploaded frame segments."""

__version__ = "0.1.0"
