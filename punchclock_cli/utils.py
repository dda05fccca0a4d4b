import asyncio


def run_async_function_synchronously(coroutine):
    return asyncio.run(coroutine)
