from troubleshoot.collect.result import CollectorResult
from troubleshoot.collect.runner import CollectionRun, build_collectors, run_collectors

__all__ = ["CollectionRun", "CollectorResult", "build_collectors", "run_collectors"]
