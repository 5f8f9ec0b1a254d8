"""
Regional Event Aggregator

Collects events for one region from several independent sources:
- Ticketmaster Discovery API (structured)
- giessen.de municipal listing (static HTML)
- Generic event pages (JSON-LD with heuristic fallback)
- Deskline tourism widgets (rendered with a headless browser)

and merges them into one deduplicated, date-sorted list.

Target: Gießen, Germany (30 km radius)
"""

__version__ = "1.0.0"
