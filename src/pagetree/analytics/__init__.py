"""Project-wide sitemap analytics."""

from pagetree.analytics.aggregator import (
    AnalyticsAggregator,
    CoverageMetrics,
    ModuleCompletion,
    SitemapAnalytics,
)

__all__ = ["AnalyticsAggregator", "CoverageMetrics", "ModuleCompletion", "SitemapAnalytics"]
