from django.core.management.base import BaseCommand
from finance_core.services.balances import recompute_account_balances


class Command(BaseCommand):
    help = "Rebuild chart-of-account balances from posted journal items."

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Recomputing account balances..."))
        drifted = recompute_account_balances()
        if drifted:
            self.stdout.write(self.style.WARNING(f"Corrected {drifted} account balance(s)."))
        else:
            self.stdout.write(self.style.SUCCESS("All account balances were up to date."))
