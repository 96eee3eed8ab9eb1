"""Request sequencing for out-of-order fetch responses."""


class RequestSequencer:
    """
    Numbers outgoing row fetches and rejects responses that lost the race.

    Features:
        - Strictly increasing request numbers starting at 1
        - Counter-based staleness check: a response is trusted only if its
          echoed number is >= the latest issued number
        - No cancellation: superseded requests complete normally and are
          filtered when their response arrives

    One sequencer belongs to exactly one table controller.
    """

    def __init__(self):
        self._sent = 0
        self._received = 0

    @property
    def latest_issued(self) -> int:
        """Number of the most recently issued request (0 if none)."""
        return self._sent

    @property
    def latest_accepted(self) -> int:
        """Number of the most recently accepted response (0 if none)."""
        return self._received

    def issue(self) -> int:
        """
        Allocate the number for a new outgoing request.

        Returns:
            The new request number
        """
        self._sent += 1
        return self._sent

    def accept(self, request_number: int) -> bool:
        """
        Check whether a response may be applied.

        Args:
            request_number: Request number echoed back by the server

        Returns:
            True if the response answers the latest issued request (or a
            newer one), False if a newer request has been issued since
        """
        if request_number < self._sent:
            return False
        self._received = request_number
        return True

    def __repr__(self) -> str:
        return (
            f"RequestSequencer(latest_issued={self._sent}, "
            f"latest_accepted={self._received})"
        )
