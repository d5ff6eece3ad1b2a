from annapurna.tasks.celery_app import celery
from annapurna.tasks import worker_jobs


@celery.task(name="annapurna.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
