from django.core.management.base import BaseCommand

from reviews.services import RatingService


class Command(BaseCommand):
    help = "Apply approved ratings that have not yet been folded into their provider's rating aggregate."

    def handle(self, *args, **options):
        result = RatingService.reconcile_provider_aggregates()

        if not result['pending']:
            self.stdout.write(self.style.SUCCESS("Provider ratings are up to date."))
            return

        self.stdout.write(self.style.SUCCESS(
            f"Applied {result['applied']} of {result['pending']} pending approved ratings."
        ))
        if result['failed']:
            self.stdout.write(self.style.WARNING(
                f"{result['failed']} ratings could not be applied; see the error log and re-run."
            ))
