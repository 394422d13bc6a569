import psutil
from time import perf_counter
from contextlib import contextmanager

"""
Report the wall time and the resident memory of this process around a block of code.
"""

@contextmanager
def profiler(description: str, enabled: bool = True, length: int = 80, pad_char: str = ':') -> None:
    if not enabled:
        yield
        return

    process = psutil.Process()
    print('\n' + description.center(length, pad_char))
    rss_before = process.memory_info().rss
    start = perf_counter()
    yield

    seconds = perf_counter() - start
    rss_after = process.memory_info().rss
    print(f'rss: {rss_after / 1e6:8.1f} MB | change: {(rss_after - rss_before) / 1e6:+8.1f} MB')
    print(f'{seconds:.2f} s for {description}'.center(length, pad_char))
