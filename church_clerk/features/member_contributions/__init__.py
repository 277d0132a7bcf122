"""
Member contributions feature package.

Keeps the member directory and the per-member contribution report
(repository, aggregation service, pagination, API router) in one slice.
"""

from .api.router import router as members_router  # noqa: F401
from .service import (  # noqa: F401
    ContributionAggregator,
    ContributionRetrievalError,
    MemberDirectory,
    MemberNotFoundError,
    contribution_aggregator,
    member_directory,
)
