"""Orchestration du crawl incrémental."""

from comiccorpus.core.crawl.context import CrawlContext
from comiccorpus.core.crawl.orchestrator import CrawlOrchestrator, run_crawl
from comiccorpus.core.crawl.titles import backfill_titles

__all__ = ["CrawlContext", "CrawlOrchestrator", "backfill_titles", "run_crawl"]
