"""Discord CDN proxy - redirects expired attachment links to freshly signed URLs."""

__version__ = "0.1.0"
