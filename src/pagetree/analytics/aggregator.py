"""Coverage and structural-health metrics across every module."""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from pagetree.constants import ASSET_SUBDIRS, META_FILENAME, PAGES_DIR, SUBPAGES_DIR
from pagetree.tree.ordering import sort_key
from pagetree.tree.repository import Repository, join

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "unknown"


class ModuleCompletion(BaseModel):
    """Asset completion of one module's pages and subpages."""

    total_pages: int
    pages_with_assets: int
    completion_rate: float


class CoverageMetrics(BaseModel):
    """How many pages and subpages carry each kind of design asset."""

    pages_with_screenshots: int = 0
    pages_with_html: int = 0
    pages_with_css: int = 0
    screenshots_percentage: float = 0.0
    html_percentage: float = 0.0
    css_percentage: float = 0.0
    completion_percentage: float = 0.0
    modules_completion: dict[str, ModuleCompletion] = Field(default_factory=dict)


class SitemapAnalytics(BaseModel):
    """Project-wide analytics report."""

    project_name: str
    total_modules: int = 0
    total_pages: int = 0
    total_subpages: int = 0
    average_pages_per_module: float = 0.0
    modules_with_deep_structure: list[str] = Field(default_factory=list)
    orphaned_pages: list[str] = Field(default_factory=list)
    status_distribution: dict[str, int] = Field(default_factory=dict)
    deepest_module: Optional[str] = None
    max_depth: int = 0
    coverage_metrics: CoverageMetrics = Field(default_factory=CoverageMetrics)


@dataclass
class _NodeScan:
    """Per-node facts gathered during the scan."""

    label: str
    status: Optional[str] = None
    problem: Optional[str] = None
    assets: dict[str, bool] = field(default_factory=dict)

    @property
    def has_any_asset(self) -> bool:
        return any(self.assets.values())

    @property
    def has_all_assets(self) -> bool:
        return all(self.assets.get(subdir, False) for subdir in ASSET_SUBDIRS)


def _percentage(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


class AnalyticsAggregator:
    """Scans every module directly, without the ordering merge of the tree builder.

    A node whose metadata is missing, unreadable or lacks title/route is
    reported as orphaned; it never aborts the aggregation.
    """

    def __init__(self, repo: Repository, project_name: str) -> None:
        self._repo = repo
        self._project_name = project_name

    def _scan_node(self, node_dir: str, label: str) -> _NodeScan:
        scan = _NodeScan(label=label)
        scan.assets = {
            subdir: self._repo.count_files(join(node_dir, subdir)) > 0 for subdir in ASSET_SUBDIRS
        }

        raw = self._repo.read_text(join(node_dir, META_FILENAME))
        if raw is None:
            scan.problem = "no meta"
            return scan
        try:
            meta = json.loads(raw)
            if not isinstance(meta, dict):
                raise ValueError("metadata is not an object")
        except ValueError as e:
            logger.debug(f"Unreadable metadata for {label}: {e}")
            scan.problem = "invalid meta"
            return scan

        status = meta.get("status")
        scan.status = status if isinstance(status, str) and status else None
        missing = [key for key in ("title", "route") if not meta.get(key)]
        if missing:
            scan.problem = "missing " + ", ".join(missing)
        return scan

    def analyze(self) -> SitemapAnalytics:
        """Compute the full analytics report."""
        report = SitemapAnalytics(project_name=self._project_name)
        statuses: Counter[str] = Counter()
        all_nodes: list[_NodeScan] = []

        modules = [m for m in self._repo.list_children("") if not m.startswith(".")]
        for module in sorted(modules, key=sort_key):
            pages_dir = join(module, PAGES_DIR)
            module_nodes: list[_NodeScan] = []
            depth = 1
            for page in sorted(self._repo.list_children(pages_dir), key=sort_key):
                depth = max(depth, 2)
                page_dir = join(pages_dir, page)
                module_nodes.append(self._scan_node(page_dir, f"{module}/{page}"))
                report.total_pages += 1
                subpages_dir = join(page_dir, SUBPAGES_DIR)
                for sub in sorted(self._repo.list_children(subpages_dir), key=sort_key):
                    depth = 3
                    module_nodes.append(
                        self._scan_node(join(subpages_dir, sub), f"{module}/{page}/{sub}")
                    )
                    report.total_subpages += 1

            report.total_modules += 1
            if depth >= 3:
                report.modules_with_deep_structure.append(module)
            if depth > report.max_depth:
                report.max_depth = depth
                report.deepest_module = module

            with_assets = sum(1 for node in module_nodes if node.has_any_asset)
            report.coverage_metrics.modules_completion[module] = ModuleCompletion(
                total_pages=len(module_nodes),
                pages_with_assets=with_assets,
                completion_rate=_percentage(with_assets, len(module_nodes)),
            )
            all_nodes.extend(module_nodes)

        for node in all_nodes:
            statuses[node.status or UNKNOWN_STATUS] += 1
            if node.problem:
                report.orphaned_pages.append(f"{node.label} ({node.problem})")

        total = len(all_nodes)
        coverage = report.coverage_metrics
        coverage.pages_with_screenshots = sum(1 for n in all_nodes if n.assets["screenshots"])
        coverage.pages_with_html = sum(1 for n in all_nodes if n.assets["html"])
        coverage.pages_with_css = sum(1 for n in all_nodes if n.assets["css"])
        coverage.screenshots_percentage = _percentage(coverage.pages_with_screenshots, total)
        coverage.html_percentage = _percentage(coverage.pages_with_html, total)
        coverage.css_percentage = _percentage(coverage.pages_with_css, total)
        coverage.completion_percentage = _percentage(
            sum(1 for n in all_nodes if n.has_all_assets), total
        )

        report.status_distribution = dict(sorted(statuses.items()))
        if report.total_modules:
            report.average_pages_per_module = round(report.total_pages / report.total_modules, 2)

        logger.info(
            f"Analyzed {report.total_modules} modules, {report.total_pages} pages, "
            f"{report.total_subpages} subpages"
        )
        return report
