"""
Dealer inventory ingestion package.

Responsibilities:
- Read the raw dealer CSV export with pandas.
- Normalize rows into the canonical Listing schema (fuel labels, body style,
  condition, inferred seating).
- Persist a cleaned CSV and hand validated listings to the catalog.
"""
