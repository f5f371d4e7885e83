from typing import Iterable, Optional


class VotingError(Exception):
    """Base class for ballot failures. `status_code` is the HTTP status the API answers with."""
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ElectionNotFoundError(VotingError):
    status_code = 404

    def __init__(self, election_id: int):
        super().__init__("election not found")
        self.election_id = election_id


class BallotValidationError(VotingError):
    status_code = 422

    def __init__(self, message: str, positions: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.positions = list(positions or [])


class VotingClosedError(VotingError):
    status_code = 403

    def __init__(self, message: str = "voting closed"):
        super().__init__(message)


class AccessCodeError(VotingError):
    status_code = 403

    def __init__(self, message: str = "invalid access code"):
        super().__init__(message)


class IneligibleVoterError(VotingError):
    status_code = 403


class AlreadyVotedError(VotingError):
    status_code = 409

    def __init__(self, message: str = "already voted"):
        super().__init__(message)


class BallotWriteError(VotingError):
    status_code = 503
    retryable = True

    def __init__(self, message: str = "the ballot could not be saved, please try again"):
        super().__init__(message)
