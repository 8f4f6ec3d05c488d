from django.core.management.base import BaseCommand

from ClassroomApp.domain.services.grade_aggregator import process_pending_grade_events

class Command(BaseCommand):
    help = "Apply pending grade events to enrollment grade ledgers."

    def handle(self, *args, **options):
        applied = process_pending_grade_events()
        self.stdout.write(self.style.SUCCESS(f"Applied {applied} grade events"))
