"""
Write a survey definition as JSON.

Usage:
    python manage.py export_survey <survey_id>
    python manage.py export_survey <survey_id> --output survey.json
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from questionbank_app.surveys.exceptions import SurveyServiceError
from questionbank_app.surveys.services import TransferService


class Command(BaseCommand):
    help = "Export a survey with its questions and link configuration as JSON"

    def add_arguments(self, parser):
        parser.add_argument("survey_id", help="ID of the survey to export")
        parser.add_argument(
            "--output",
            help="File to write instead of standard output",
        )

    def handle(self, *args, **options):
        try:
            payload = TransferService.export_survey(options["survey_id"])
        except SurveyServiceError as exc:
            raise CommandError(str(exc))

        text = json.dumps(payload, cls=DjangoJSONEncoder, indent=2)
        output = options.get("output")
        if not output:
            self.stdout.write(text)
            return

        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        self.stdout.write(
            self.style.SUCCESS(
                f"Exported '{payload['title']}' "
                f"({len(payload['questions'])} questions) to {output}"
            )
        )
