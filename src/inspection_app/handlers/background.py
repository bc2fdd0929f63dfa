"""Run blocking service calls off the Toga event loop."""


def run_in_background(app, on_done, fn, *args, **kwargs):
    """Submit ``fn`` to the app executor and hand its future to ``on_done`` on the event loop.

    ``on_done`` receives the finished future and calls ``future.result()``
    itself, so exceptions raised by ``fn`` surface on the loop thread.
    """
    future = app.executor.submit(fn, *args, **kwargs)
    future.add_done_callback(lambda f: app.loop.call_soon_threadsafe(on_done, f))
    return future
