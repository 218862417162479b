"""
Import a survey definition produced by ``export_survey``.

Usage:
    python manage.py import_survey survey.json
    python manage.py import_survey survey.json --dry-run
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from questionbank_app.surveys.exceptions import SurveyServiceError
from questionbank_app.surveys.services import TransferService


class DryRunRollback(Exception):
    pass


class Command(BaseCommand):
    help = "Import (create or update) a survey from a JSON export"

    def add_arguments(self, parser):
        parser.add_argument("file", help="Path to the JSON export")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Run the import and roll it back, reporting what would change",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        try:
            with open(options["file"], encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, ValueError) as exc:
            raise CommandError(f"Could not read {options['file']}: {exc}")
        if not isinstance(payload, dict):
            raise CommandError("Expected a JSON object at the top level")

        if dry_run:
            self.stdout.write(
                self.style.WARNING("DRY RUN MODE - No changes will be made")
            )

        try:
            with transaction.atomic():
                survey = TransferService.import_survey(payload)
                links = survey.question_links.count()
                if dry_run:
                    raise DryRunRollback
        except DryRunRollback:
            pass
        except SurveyServiceError as exc:
            raise CommandError(str(exc))

        verb = "Would import" if dry_run else "Imported"
        self.stdout.write(
            self.style.SUCCESS(f"{verb} survey '{survey.title}' with {links} questions")
        )
        if not dry_run:
            self.stdout.write(f"Survey ID: {survey.id}")
