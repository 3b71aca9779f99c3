from django.core.management import call_command
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Seeds the database with demo data (wraps create_demo_scheme)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--organisation",
            type=str,
            default="Demo Strata",
            help="Name of the demo organisation (default: Demo Strata)",
        )

    def handle(self, *args, **options):
        name = options["organisation"]

        self.stdout.write(self.style.NOTICE(
            f"Seeding demo data for {name}..."))
        call_command("create_demo_scheme", organisation_name=name)
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))
