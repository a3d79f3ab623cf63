"""
Vehicle recommendation engine.

Responsibilities:
- Sanitize structured filters and parse free-text notes into constraints.
- Hard-filter the dealer catalog to matching candidates.
- Score candidates on budget fit, attribute match and learned preference.
- Interleave results across base models and attach listing descriptions.
"""
