from socrates.session.live_gate import LiveFeedbackGate


class _Clock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_gate_fires_only_after_interval():
    clock = _Clock()
    gate = LiveFeedbackGate(interval_sec=5.0, clock=clock)

    clock.now = 5.0
    assert gate.try_acquire() is None

    clock.now = 5.01
    token = gate.try_acquire()
    assert token == 0
    assert gate.in_flight
    assert gate.last_fired_at == 5.01


def test_gate_drops_trigger_while_in_flight():
    clock = _Clock()
    gate = LiveFeedbackGate(interval_sec=1.0, clock=clock)

    clock.now = 2.0
    token = gate.try_acquire()
    clock.now = 10.0
    assert gate.is_due()
    assert gate.try_acquire() is None
    # the dropped trigger does not move the timer
    assert gate.last_fired_at == 2.0

    gate.release(token)
    assert gate.try_acquire() == token


def test_invalidate_makes_old_tokens_stale():
    clock = _Clock()
    gate = LiveFeedbackGate(interval_sec=0.0, clock=clock)

    clock.now = 1.0
    token = gate.try_acquire()
    gate.invalidate()

    assert not gate.is_current(token)
    assert not gate.in_flight

    # a stale release must not clear the flag of a newer task
    clock.now = 2.0
    fresh = gate.try_acquire()
    gate.release(token)
    assert gate.in_flight
    gate.release(fresh)
    assert not gate.in_flight


def test_reset_restarts_interval():
    clock = _Clock()
    gate = LiveFeedbackGate(interval_sec=5.0, clock=clock)
    clock.now = 100.0
    gate.reset()
    assert not gate.is_due()
    clock.now = 105.5
    assert gate.is_due()
