"""Custom exceptions for configuration, validation and voting outcomes."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class MissingFieldError(ConfigurationError):
    """Error when a required catalog or configuration field is missing."""

    def __init__(self, field: str, config_path: str) -> None:
        super().__init__(
            f"Missing required field '{field}' in {config_path}",
            "Add the field to your file.",
        )


class ValidationError(ConfigurationError):
    """Error when configuration validation fails."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{field}'",
            f"{reason}",
        )


class ArenaError(Exception):
    """Base exception for voting, matchmaking and leaderboard outcomes.

    Attributes:
        kind: Stable error kind reported to clients.
        message: Human readable description.
    """

    kind = "failure"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(ArenaError):
    """Payload or query parameters failed validation."""

    kind = "invalid_request"


class MatchupNotFoundError(ArenaError):
    """The referenced matchup does not exist."""

    kind = "not_found"

    def __init__(self, matchup_id: str) -> None:
        self.matchup_id = matchup_id
        super().__init__(f"Matchup not found: {matchup_id}")


class InvalidWinnerError(ArenaError):
    """The chosen winner is not one of the matchup's two films."""

    kind = "invalid_winner"

    def __init__(self, matchup_id: str, winner_id: str) -> None:
        self.matchup_id = matchup_id
        self.winner_id = winner_id
        super().__init__(f"winner_id {winner_id!r} is not a film in matchup {matchup_id}")


class DuplicateVoteError(ArenaError):
    """The user already voted on this specific matchup."""

    kind = "duplicate_vote"

    def __init__(self, matchup_id: str, user_id: str) -> None:
        self.matchup_id = matchup_id
        self.user_id = user_id
        super().__init__(f"Already voted on matchup {matchup_id}")


class VoteRecordingError(ArenaError):
    """Generic failure while persisting a vote; the vote was not counted."""

    kind = "failure"


class CatalogInconsistencyError(ArenaError):
    """A matchup references film rows that do not exist."""

    kind = "failure"


class ArenaClientError(ArenaError):
    """Transport-level failure while talking to the arena service."""

    kind = "failure"
