from django.core.management.base import BaseCommand

from ClassroomApp.domain.services.statistics_service import recompute_statistics
from ClassroomApp.learning.models import Assignment

class Command(BaseCommand):
    help = "Recompute derived statistics for all (or the given) assignments."

    def add_arguments(self, parser):
        parser.add_argument("assignment_ids", nargs="*", type=int)

    def handle(self, *args, **options):
        qs = Assignment.objects.all()
        if options["assignment_ids"]:
            qs = qs.filter(pk__in=options["assignment_ids"])
        updated = 0
        for assignment in qs.iterator():
            recompute_statistics(assignment)
            updated += 1
        self.stdout.write(self.style.SUCCESS(f"Recomputed statistics for {updated} assignments"))
