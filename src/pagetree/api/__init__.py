"""HTTP surface of the sitemap service."""
