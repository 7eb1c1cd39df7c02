import asyncio
from functools import partial


async def firebase_run(fn, *args, **kwargs):
    """
    Run a blocking Firebase Admin SDK call (Firestore, FCM) in the default executor.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        partial(fn, *args, **kwargs)
    )


async def firebase_stream(query) -> list:
    """Drain a Firestore query's document stream off the event loop."""
    return await firebase_run(lambda: list(query.stream()))
