class BracketError(Exception):
    """Base class for every bracket engine failure."""


class InsufficientTeams(BracketError):
    def __init__(self, team_count: int):
        self.team_count = team_count
        super().__init__(f"A single-elimination bracket needs at least 2 teams, got {team_count}.")


class MatchNotFound(BracketError):
    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found in bracket.")


class InvalidWinner(BracketError):
    def __init__(self, match_id: str, winner_team_id: str):
        self.match_id = match_id
        self.winner_team_id = winner_team_id
        super().__init__(f"Team {winner_team_id} is not seated in match {match_id}.")


class TeamsNotSeated(BracketError):
    pass


class InvalidTransition(BracketError):
    pass


class InvalidSeeding(BracketError):
    pass


class BracketLocked(BracketError):
    pass
