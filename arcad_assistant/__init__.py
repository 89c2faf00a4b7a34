"""ARCAD product assistant: question routing, catalog answers, and streamed Gemini answers."""

__version__ = "0.1.0"
