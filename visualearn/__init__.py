"""
VisuaLearn - chat with Google's Gemini models, with optional image attachments.

This package provides a terminal chat client around a Gemini provider that
picks a text or vision model per message and persists the API key locally.
"""

__version__ = "1.0.0"
