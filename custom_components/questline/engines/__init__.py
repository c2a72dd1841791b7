"""Engine modules for Questline integration.

Contains pure computation engines:
- status_engine: Display status derivation, cascade and normalization
- progress_engine: Season/chapter/task progress aggregation
- review_engine: Completion watcher for review prompts
"""

# Use relative imports within package to avoid mypy module resolution issues
from .progress_engine import ProgressEngine
from .review_engine import CompletionWatcher, ReviewCandidate
from .status_engine import STATUS_RULES, StatusContext, StatusEngine

# Form-facing entry points
derive_display_status = StatusEngine.derive_display_status
normalize_for_storage = StatusEngine.normalize_for_storage
aggregate_season_progress = ProgressEngine.aggregate_season_progress
chapter_progress_ratio = ProgressEngine.chapter_progress_ratio

__all__ = [
    "STATUS_RULES",
    "CompletionWatcher",
    "ProgressEngine",
    "ReviewCandidate",
    "StatusContext",
    "StatusEngine",
    "aggregate_season_progress",
    "chapter_progress_ratio",
    "derive_display_status",
    "normalize_for_storage",
]
