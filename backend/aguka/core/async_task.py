from celery import Task


class AsyncTask(Task):
    """
    Runs ``async def`` task bodies on the persistent event loop of the
    prefork worker process.
    """
    def __call__(self, *args, **kwargs):
        from aguka.core.celery_app import get_worker_loop

        loop = get_worker_loop()
        if loop is None:
            raise RuntimeError("Asyncio event loop not initialized for worker process")

        return loop.run_until_complete(self.run(*args, **kwargs))
