from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown
from aguka.core.config import settings
import warnings
import logging
import asyncio

warnings.filterwarnings("ignore", message=".*register_connect_callback.*")
logging.getLogger('celery.backends.redis').setLevel(logging.ERROR)

# one event loop per worker process, shared by every AsyncTask it runs
_WORKER_LOOP = None


@worker_process_init.connect
def init_async_loop(**kwargs):
    """
    Called once when each worker process starts.
    Creates and stores a persistent event loop for this process.
    """
    global _WORKER_LOOP
    _WORKER_LOOP = asyncio.new_event_loop()
    asyncio.set_event_loop(_WORKER_LOOP)
    logging.info(f"Initialized asyncio event loop for worker process {kwargs.get('sender', 'unknown')}")


@worker_process_shutdown.connect
def shutdown_async_loop(**kwargs):
    global _WORKER_LOOP
    if _WORKER_LOOP:
        _WORKER_LOOP.close()
        asyncio.set_event_loop(None)
        logging.info("Closed asyncio event loop for worker process")


def get_worker_loop():
    """Get the persistent event loop for this worker process."""
    return _WORKER_LOOP


celery_app = Celery(
    "aguka_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        'aguka.tasks.submissions',
        'aguka.tasks.notifications',
        'aguka.tasks.maintenance',
    ]
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    task_routes={
        'sync_pending_submissions': {'queue': 'submissions'},
        'enforce_fullscreen_exit': {'queue': 'submissions'},
        'send_test_passed_email': {'queue': 'notifications'},
        'expire_stale_sessions': {'queue': 'maintenance'},
        'cleanup_orphaned_chunks': {'queue': 'maintenance'},
    },

    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,

    task_soft_time_limit=300,
    task_time_limit=600,

    result_expires=3600,
    result_backend_transport_options={
        'visibility_timeout': 3600,
        'retry_on_timeout': True,
        'health_check_interval': 30,
    },

    broker_connection_retry_on_startup=True,
    broker_transport_options={
        'visibility_timeout': 3600,
        'fanout_prefix': True,
        'fanout_patterns': True,
    },

    task_default_retry_delay=60,
    task_max_retries=3,

    beat_schedule={
        'sync-pending-submissions': {
            'task': 'sync_pending_submissions',
            'schedule': settings.submission_sync_interval,
        },
        'expire-stale-sessions': {
            'task': 'expire_stale_sessions',
            'schedule': 300.0,
        },
        'cleanup-orphaned-chunks': {
            'task': 'cleanup_orphaned_chunks',
            'schedule': 10800.0,
        },
    },
)

if __name__ == '__main__':
    celery_app.start()
