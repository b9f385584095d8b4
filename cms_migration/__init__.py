"""
CMS Migration Toolkit

One-off migration commands that move legacy CMS records onto a newer data
model: news list modules, tab content elements, category taxonomies, tag
relations and carousel configuration.

Supports:
- Declarative field mapping with transforms and key prefixes
- Dry runs that touch no persistent state
- Template relocation with provenance annotation
- Upgrade notices and replayable SQL statements for operators
"""

__version__ = "0.1.0"
