"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Write a short neutral blurb for a place whose provider description is missing or too long.
- Graceful fallback to the provider description when the LLM is unavailable.
"""
