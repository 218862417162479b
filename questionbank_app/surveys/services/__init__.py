"""
Business logic for the question bank and its surveys.

This package contains:
- Question bank authoring (QuestionService)
- Survey and link management (SurveyService)
- Respondent submissions and stored responses (SubmissionService)
- Read-only survey analytics (AnalyticsService)
- Survey export and import (TransferService)
"""

from .analytics import AnalyticsService
from .questions import QuestionService
from .submissions import SubmissionService
from .surveys import SurveyService
from .transfer import TransferService

__all__ = [
    "AnalyticsService",
    "QuestionService",
    "SubmissionService",
    "SurveyService",
    "TransferService",
]
