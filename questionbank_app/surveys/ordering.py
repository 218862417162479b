"""Dense ordering of a survey's question links.

A survey's links carry ``order_index`` values forming ``0..N-1``. Appends take
the next free index; removals re-densify the remaining links. Indices given
explicitly by a caller are stored as-is and siblings are not shifted, so a
caller repositioning links is responsible for keeping them distinct.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Max

from .models import Survey, SurveyQuestionLink

logger = logging.getLogger(__name__)


def next_order_index(survey: Survey) -> int:
    current = SurveyQuestionLink.objects.filter(survey=survey).aggregate(
        top=Max("order_index")
    )["top"]
    return 0 if current is None else current + 1


def densify(survey: Survey) -> int:
    """Renumber the survey's links to ``0..N-1`` keeping their relative order.

    Idempotent. Runs in one transaction with the link rows locked, so no
    intermediate numbering is visible to other readers. Returns the number of
    links whose index changed.
    """
    with transaction.atomic():
        links = list(
            SurveyQuestionLink.objects.select_for_update()
            .filter(survey=survey)
            .order_by("order_index", "created_at", "id")
        )
        changed = []
        for position, link in enumerate(links):
            if link.order_index != position:
                link.order_index = position
                changed.append(link)
        if changed:
            SurveyQuestionLink.objects.bulk_update(changed, ["order_index"])
            logger.debug(
                "Re-densified %d link(s) in survey %s", len(changed), survey.pk
            )
        return len(changed)


def remove_link(link: SurveyQuestionLink) -> None:
    """Delete a link and close the gap it leaves behind."""
    with transaction.atomic():
        survey = link.survey
        removed_index = link.order_index
        link.delete()
        densify(survey)
    logger.info("Removed link at index %d from survey %s", removed_index, survey.pk)
