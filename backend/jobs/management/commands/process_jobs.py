from django.conf import settings
from django.core.management.base import BaseCommand

from jobs.services.queue import process_pending_jobs


class Command(BaseCommand):
    help = "Run pending background jobs (invoice emails, confirmations, gift card delivery)."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=settings.JOBS_BATCH_SIZE)

    def handle(self, *args, **options):
        summary = process_pending_jobs(limit=options["limit"])
        if not summary["processed"]:
            self.stdout.write("No pending jobs")
            return

        for job in summary["jobs"]:
            style = self.style.SUCCESS if job["status"] == "completed" else self.style.ERROR
            self.stdout.write(style(f"{job['job_type']} {job['id']}: {job['status']}"))
        self.stdout.write(
            self.style.MIGRATE_HEADING(
                f"Processed {summary['processed']} jobs ({summary['failed']} failed)"
            )
        )
