"""
AI Noter backend gateway built with FastAPI, exposing
- an audio upload endpoint relayed to a speech-to-text provider,
- a text summarization endpoint relayed to a language model,
- and a liveness endpoint,
while keeping the provider API key on the server.
"""

__version__ = "0.2.0"
