"""HTTP server exposing part of the Ollama API on top of an OpenAI-compatible backend."""

__version__ = "0.1.0"