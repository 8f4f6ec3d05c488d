"""Assignment statistics recomputation.

Statistics are derived solely from the assignment's submissions and are
rewritten after every submit/grade; no other code path writes them.
"""

import logging
from dataclasses import asdict, fields

from ClassroomApp.domain.scoring import AssignmentStatistics, compute_statistics
from ClassroomApp.learning.models import Assignment, SubmissionGrade

logger = logging.getLogger(__name__)

STATISTIC_FIELDS = [field.name for field in fields(AssignmentStatistics)]


def recompute_statistics(assignment: Assignment) -> AssignmentStatistics:
    """Recompute and persist the aggregates of one assignment."""
    rows = list(assignment.submissions.values_list("id", "is_late"))
    scores = dict(
        SubmissionGrade.objects.filter(submission__assignment=assignment).values_list("submission_id", "score")
    )
    previous = AssignmentStatistics(**{field: getattr(assignment, field) for field in STATISTIC_FIELDS})
    stats = compute_statistics([(is_late, scores.get(pk)) for pk, is_late in rows], previous)
    for field, value in asdict(stats).items():
        setattr(assignment, field, value)
    assignment.save(update_fields=[*STATISTIC_FIELDS, "updated_at"])
    logger.debug("Statistics for assignment %s: %s", assignment.pk, stats)
    return stats
