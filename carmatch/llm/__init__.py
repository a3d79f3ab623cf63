"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build a listing-description prompt from the listing, filter and profile.
- Call the Groq chat completion API for a short sales blurb.
- Return an empty string on any failure so callers can fall back to a template.
"""
