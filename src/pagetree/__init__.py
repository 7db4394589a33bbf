"""Sitemap service for module/page/subpage design-asset trees."""

__version__ = "0.1.0"
