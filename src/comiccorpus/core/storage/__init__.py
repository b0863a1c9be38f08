from comiccorpus.core.storage.db import CrawlDB

__all__ = ["CrawlDB"]
