"""Tests for request numbering and stale response rejection."""

from livetable.core.state import RequestSequencer


class TestRequestSequencer:
    """Tests for RequestSequencer."""

    def test_numbers_start_at_one_and_increase(self):
        sequencer = RequestSequencer()
        assert sequencer.latest_issued == 0
        assert [sequencer.issue() for _ in range(3)] == [1, 2, 3]
        assert sequencer.latest_issued == 3

    def test_accepts_latest_request(self):
        sequencer = RequestSequencer()
        number = sequencer.issue()
        assert sequencer.accept(number)
        assert sequencer.latest_accepted == number

    def test_rejects_superseded_response(self):
        """Response 1 arriving after request 2 was issued is stale."""
        sequencer = RequestSequencer()
        first = sequencer.issue()
        second = sequencer.issue()

        assert sequencer.accept(second)
        assert not sequencer.accept(first)
        assert sequencer.latest_accepted == second

    def test_rejects_old_response_even_before_newer_arrives(self):
        sequencer = RequestSequencer()
        first = sequencer.issue()
        sequencer.issue()

        assert not sequencer.accept(first)
        assert sequencer.latest_accepted == 0

    def test_accepts_repeated_latest_response(self):
        sequencer = RequestSequencer()
        number = sequencer.issue()
        assert sequencer.accept(number)
        assert sequencer.accept(number)
