"""Tests for AdmissionController."""
import threading
from datetime import date

from dreamcanvas.services.admission import AdmissionController


class FakeDay:
    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


class TestInFlightGate:
    def test_second_acquire_fails_until_release(self) -> None:
        gate = AdmissionController()
        assert gate.try_acquire() is True
        assert gate.try_acquire() is False
        gate.release()
        assert gate.try_acquire() is True

    def test_release_never_goes_negative(self) -> None:
        gate = AdmissionController()
        gate.release()
        gate.release()
        assert gate.in_flight == 0
        assert gate.try_acquire() is True
        assert gate.try_acquire() is False

    def test_concurrent_acquire_exactly_one_wins(self) -> None:
        gate = AdmissionController()
        barrier = threading.Barrier(8)
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            won = gate.try_acquire()
            with lock:
                results.append(won)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert gate.in_flight == 1


class TestQuotaGate:
    def test_disabled_quota_always_admits(self) -> None:
        gate = AdmissionController(daily_quota=0)
        for _ in range(100):
            assert gate.try_acquire_quota("alice") is True

    def test_n_plus_first_call_fails_same_day(self) -> None:
        gate = AdmissionController(daily_quota=3, today=FakeDay(date(2026, 1, 1)))
        for _ in range(3):
            assert gate.try_acquire_quota("alice") is True
            gate.commit_quota("alice")
        assert gate.try_acquire_quota("alice") is False
        assert gate.usage("alice") == 3

    def test_uncommitted_reservations_count_against_allowance(self) -> None:
        gate = AdmissionController(daily_quota=2, today=FakeDay(date(2026, 1, 1)))
        assert gate.try_acquire_quota("alice") is True
        assert gate.try_acquire_quota("alice") is True
        assert gate.try_acquire_quota("alice") is False

    def test_released_reservation_is_not_consumed(self) -> None:
        gate = AdmissionController(daily_quota=1, today=FakeDay(date(2026, 1, 1)))
        assert gate.try_acquire_quota("alice") is True
        gate.release_quota("alice")
        assert gate.usage("alice") == 0
        assert gate.try_acquire_quota("alice") is True

    def test_callers_are_independent(self) -> None:
        gate = AdmissionController(daily_quota=1, today=FakeDay(date(2026, 1, 1)))
        assert gate.try_acquire_quota("alice") is True
        gate.commit_quota("alice")
        assert gate.try_acquire_quota("alice") is False
        assert gate.try_acquire_quota("bob") is True

    def test_day_rollover_resets_count_to_zero(self) -> None:
        clock = FakeDay(date(2026, 1, 1))
        gate = AdmissionController(daily_quota=2, today=clock)
        for _ in range(2):
            assert gate.try_acquire_quota("alice")
            gate.commit_quota("alice")
        assert gate.try_acquire_quota("alice") is False

        clock.day = date(2026, 1, 2)
        assert gate.usage("alice") == 0
        # A full fresh allowance, not just one extra call.
        assert gate.try_acquire_quota("alice") is True
        gate.commit_quota("alice")
        assert gate.try_acquire_quota("alice") is True
        gate.commit_quota("alice")
        assert gate.try_acquire_quota("alice") is False

    def test_stale_day_entries_are_dropped(self) -> None:
        clock = FakeDay(date(2026, 1, 1))
        gate = AdmissionController(daily_quota=2, today=clock)
        for caller in ("alice", "bob", "carol"):
            assert gate.try_acquire_quota(caller)
            gate.commit_quota(caller)
        assert len(gate._quota) == 3

        clock.day = date(2026, 1, 2)
        assert gate.try_acquire_quota("dave") is True
        assert list(gate._quota) == ["dave"]
        assert gate.usage("alice") == 0

    def test_release_after_rollover_is_harmless(self) -> None:
        clock = FakeDay(date(2026, 1, 1))
        gate = AdmissionController(daily_quota=1, today=clock)
        assert gate.try_acquire_quota("alice") is True

        clock.day = date(2026, 1, 2)
        assert gate.try_acquire_quota("bob") is True
        gate.release_quota("alice")
        assert "alice" not in gate._quota
        assert gate.try_acquire_quota("alice") is True
