from deed_resolver.documents.fetcher import compute_backoff_delays


def test_retry_backoff_unit():
    delays = compute_backoff_delays(3, base_delay=0.5, factor=2.0, jitter=0.0, rand_fn=lambda: 0.2)
    assert delays == [0.5, 1.0, 2.0]


def test_retry_backoff_jitter_never_negative():
    delays = compute_backoff_delays(2, base_delay=0.0, factor=2.0, jitter=0.5, rand_fn=lambda: 0.0)
    assert delays == [0.0, 0.0]
