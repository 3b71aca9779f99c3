from django.core.management.base import BaseCommand, CommandError

from trust_core.models import Scheme
from trust_core.tasks import recompute_balance_snapshots


class Command(BaseCommand):
    help = "Rebuild balance snapshots from the posted journal (one scheme or all)."

    def add_arguments(self, parser):
        parser.add_argument("--scheme", type=int, help="Scheme id (default: every scheme)")
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the rebuild on Celery instead of running it inline.",
        )

    def handle(self, *args, **options):
        schemes = Scheme.objects.all()
        if options["scheme"] is not None:
            schemes = schemes.filter(pk=options["scheme"])
            if not schemes.exists():
                raise CommandError(f"Scheme {options['scheme']} not found")

        for scheme_id in schemes.values_list("pk", flat=True):
            if options["run_async"]:
                recompute_balance_snapshots.delay(scheme_id)
                self.stdout.write(f"Queued snapshot rebuild for scheme {scheme_id}")
            else:
                count = recompute_balance_snapshots(scheme_id)
                self.stdout.write(
                    self.style.SUCCESS(f"Scheme {scheme_id}: {count} snapshot rows")
                )
