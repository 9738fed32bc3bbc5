from django.core.management.base import BaseCommand

from apps.ingestion.dtos import Outcome
from apps.ingestion.models import FailedNotification, FailedNotificationStatus, FailureCode
from apps.ingestion.services import replay_failed_notification


class Command(BaseCommand):
    help = 'Replays dead-lettered upload notifications through the ingestion pipeline.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--error-code',
            choices=FailureCode.values,
            help='Only replay notifications that failed with this code',
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=100,
            help='Maximum number of notifications to replay',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the notifications without replaying them',
        )

    def handle(self, *args, **options):
        queryset = FailedNotification.objects.filter(
            status=FailedNotificationStatus.PENDING
        ).order_by('created_at')
        if options['error_code']:
            queryset = queryset.filter(error_code=options['error_code'])

        pending = list(queryset[:options['limit']])
        if not pending:
            self.stdout.write('No failed uploads to replay.')
            return

        counts = {outcome: 0 for outcome in Outcome}
        for failed in pending:
            label = f"s3://{failed.container}/{failed.object_key} ({failed.error_code})"
            if options['dry_run']:
                self.stdout.write(f"Would replay {label}")
                continue

            outcome = replay_failed_notification(failed)
            counts[outcome] += 1
            self.stdout.write(f"{outcome.value}: {label}")

        if options['dry_run']:
            self.stdout.write(f"{len(pending)} failed upload(s) pending.")
            return

        self.stdout.write(self.style.SUCCESS(
            f"Replayed {len(pending)}: "
            f"{counts[Outcome.COMPLETED]} completed, "
            f"{counts[Outcome.RETRY_SCHEDULED]} rescheduled, "
            f"{counts[Outcome.DEAD_LETTERED]} dead-lettered again"
        ))
