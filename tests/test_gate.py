import unittest

from src.outings.errors import ConfirmationPendingError, GateError
from src.outings.gate import AwaitingConfirmation, ConfirmationGate, GateIdle


class TestConfirmationGate(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list[str] = []
        self.gate = ConfirmationGate()

    def _open(self, days: int = 2):
        return self.gate.open(
            days,
            on_confirm=lambda: self.calls.append("confirm"),
            on_cancel=lambda: self.calls.append("cancel"),
        )

    def test_starts_idle(self) -> None:
        self.assertIsInstance(self.gate.state, GateIdle)
        self.assertFalse(self.gate.is_awaiting)
        self.assertIsNone(self.gate.request)

    def test_open_then_confirm(self) -> None:
        request = self._open(3)
        self.assertIsInstance(self.gate.state, AwaitingConfirmation)
        self.assertIs(self.gate.request, request)
        self.assertEqual(request.days_to_lose, 3)

        request.on_confirm()
        self.assertEqual(self.calls, ["confirm"])
        self.assertIsInstance(self.gate.state, GateIdle)
        self.assertTrue(request.resolved)
        self.assertTrue(request.confirmed)
        self.assertFalse(request.cancelled)

    def test_open_then_cancel_through_gate(self) -> None:
        request = self._open()
        self.assertFalse(request.resolved)
        self.gate.cancel()
        self.assertTrue(request.cancelled)
        self.assertEqual(self.calls, ["cancel"])
        self.assertFalse(self.gate.is_awaiting)

    def test_second_request_is_refused_while_awaiting(self) -> None:
        first = self._open()
        with self.assertRaises(ConfirmationPendingError):
            self._open()
        self.assertIs(self.gate.request, first)

    def test_callbacks_run_exactly_once(self) -> None:
        request = self._open()
        request.on_cancel()
        with self.assertRaises(GateError):
            request.on_confirm()
        with self.assertRaises(GateError):
            request.on_cancel()
        self.assertEqual(self.calls, ["cancel"])

    def test_resolving_when_idle_is_an_error(self) -> None:
        with self.assertRaises(GateError):
            self.gate.confirm()
        with self.assertRaises(GateError):
            self.gate.cancel()

    def test_days_to_lose_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            self._open(0)
        self.assertFalse(self.gate.is_awaiting)

    def test_gate_is_idle_when_action_runs(self) -> None:
        seen: list[bool] = []
        self.gate.open(1, on_confirm=lambda: seen.append(self.gate.is_awaiting), on_cancel=lambda: None)
        self.gate.confirm()
        self.assertEqual(seen, [False])

    def test_listener_receives_request(self) -> None:
        received = []
        gate = ConfirmationGate(on_request=received.append)
        request = gate.open(1, on_confirm=lambda: None, on_cancel=lambda: None)
        self.assertEqual(received, [request])

    def test_new_request_allowed_after_resolution(self) -> None:
        self._open().on_confirm()
        self._open().on_cancel()
        self.assertEqual(self.calls, ["confirm", "cancel"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
