"""Mari - ask every period what you are working on, add it to the day."""

__version__ = "0.1.0"
