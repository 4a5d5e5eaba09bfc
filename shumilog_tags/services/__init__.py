"""Service layer with business logic."""

from .association import AssociationPlan, AssociationReconciler, PlannedEdge, plan_associations
from .log_tags import LogTagService
from .revision import RevisionRecorder
from .search import TagSearchEngine
from .tag import TagService
from .usage import UsageAggregator

__all__ = [
    "TagService",
    "LogTagService",
    "RevisionRecorder",
    "AssociationReconciler",
    "AssociationPlan",
    "PlannedEdge",
    "plan_associations",
    "TagSearchEngine",
    "UsageAggregator",
]
