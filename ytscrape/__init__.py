"""ytscrape: YouTube transcript retrieval behind a self-maintained proxy pool."""

__version__ = "1.0.0"
