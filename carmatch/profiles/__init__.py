"""
Per-session preference profiles.

Responsibilities:
- Hold one mutable profile per session id behind a swappable key-value store.
- Fold like/reject feedback into frequency counters and running budget stats.
- Serialize updates per session so concurrent feedback cannot interleave.
"""
