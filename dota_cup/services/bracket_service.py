import logging
import os
import random
import secrets
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from dota_cup.bracket import advancer
from dota_cup.bracket.errors import BracketLocked, InsufficientTeams, MatchNotFound, TeamsNotSeated
from dota_cup.bracket.generator import generate_bracket
from dota_cup.core.config import settings
from dota_cup.models.bracket_model import BracketModel, LobbyModel, MatchModel, MatchStatus
from dota_cup.models.tournament_model import TournamentConfig, TournamentStatus
from dota_cup.services.json_store import JsonFileStore
from dota_cup.services.tournament_service import TournamentService
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

BRACKETS_FILE = os.path.join(settings.DATA_DIR, "brackets.json")
LOBBY_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
LOBBY_PASSWORD_LENGTH = 6


def lobby_instructions(lobby_name: str, password: str) -> List[str]:
    return [
        "Launch Dota 2 and open Play Dota > Custom Lobbies > Create.",
        f"Set the lobby name to '{lobby_name}' and the password to '{password}'.",
        "Choose Captains Mode and the agreed server region.",
        "Invite the opposing captain or share the password with them.",
        "Start the game once all ten players are seated, then report the result here.",
    ]


class BracketService:
    def __init__(self,
                 brackets_file_path: str = BRACKETS_FILE,
                 tournament_service: Optional[TournamentService] = None,
                 user_service: Optional[UserService] = None,
                 rng: Optional[random.Random] = None
                ):
        self.brackets_file_path = brackets_file_path
        self.store = JsonFileStore(brackets_file_path)
        self.user_service = user_service or UserService()
        self.tournament_service = tournament_service or TournamentService(user_service=self.user_service)
        self.rng = rng

    def get_bracket_by_tournament_id(self, tournament_id: str) -> Optional[BracketModel]:
        for bracket_dict in self.store.load():
            if bracket_dict.get("tournament_id") == tournament_id:
                return BracketModel(**bracket_dict)
        return None

    def get_match(self, tournament_id: str, match_id: str) -> Optional[MatchModel]:
        bracket = self.get_bracket_by_tournament_id(tournament_id)
        if bracket is None:
            return None
        return bracket.get_match(match_id)

    def _require_tournament(self, tournament_id: str) -> TournamentConfig:
        tournament = self.tournament_service.get_tournament_by_id(tournament_id)
        if not tournament:
            raise ValueError(f"Tournament with ID {tournament_id} not found.")
        return tournament

    @contextmanager
    def _editing(self, tournament_id: str) -> Iterator[BracketModel]:
        """Loads the stored bracket for modification; it is saved only if the block succeeds."""
        with self.store.transaction() as brackets:
            for bracket_dict in brackets:
                if bracket_dict.get("tournament_id") == tournament_id:
                    bracket = BracketModel(**bracket_dict)
                    yield bracket
                    bracket_dict.clear()
                    bracket_dict.update(bracket.model_dump(mode="json"))
                    return
            raise ValueError(f"Bracket for tournament ID {tournament_id} not found.")

    def _build(self, tournament: TournamentConfig, manual_order: Optional[Sequence[str]]) -> BracketModel:
        if len(tournament.teams) < 2:
            raise InsufficientTeams(len(tournament.teams))
        return generate_bracket(tournament, tournament.teams, rng=self.rng, manual_order=manual_order)

    def create_bracket_for_tournament(
        self, tournament_id: str, manual_order: Optional[Sequence[str]] = None
    ) -> BracketModel:
        """
        Builds the bracket from the registered teams and starts the tournament.

        Only allowed while registration is open. Any bracket stored for the
        tournament is replaced as a whole.
        """
        with self.store.transaction() as brackets:
            # status is read under the brackets lock; concurrent calls see each other's update
            tournament = self._require_tournament(tournament_id)
            if tournament.status in (TournamentStatus.ONGOING, TournamentStatus.COMPLETED):
                raise BracketLocked(f"Tournament {tournament_id} already has a bracket.")
            if tournament.status != TournamentStatus.REGISTRATION:
                raise ValueError(f"Bracket cannot be generated for a tournament in status '{tournament.status}'.")

            bracket = self._build(tournament, manual_order)
            brackets[:] = [b for b in brackets if b.get("tournament_id") != tournament_id]
            brackets.append(bracket.model_dump(mode="json"))
            self.tournament_service.update_tournament_status(tournament_id, TournamentStatus.ONGOING.value)
        return bracket

    def regenerate_bracket(
        self, tournament_id: str, manual_order: Optional[Sequence[str]] = None
    ) -> BracketModel:
        """Rebuilds the bracket from scratch, as long as no match has been played."""
        with self.store.transaction() as brackets:
            tournament = self._require_tournament(tournament_id)
            if tournament.status != TournamentStatus.ONGOING:
                raise ValueError(f"Bracket cannot be regenerated for a tournament in status '{tournament.status}'.")

            existing = [b for b in brackets if b.get("tournament_id") == tournament_id]
            if not existing:
                raise ValueError(f"Bracket for tournament ID {tournament_id} not found.")
            for match in BracketModel(**existing[0]).matches:
                if match.status in (MatchStatus.ONGOING, MatchStatus.COMPLETED):
                    raise BracketLocked("Bracket cannot be regenerated once a match has started.")
            bracket = self._build(tournament, manual_order)
            brackets[:] = [b for b in brackets if b.get("tournament_id") != tournament_id]
            brackets.append(bracket.model_dump(mode="json"))
        logger.info("Regenerated bracket for tournament %s", tournament_id)
        return bracket

    def _require_running(self, tournament_id: str, allow_completed: bool = False) -> TournamentConfig:
        tournament = self._require_tournament(tournament_id)
        allowed = [TournamentStatus.ONGOING.value]
        if allow_completed:
            # lets the final be reported again once it has decided the tournament
            allowed.append(TournamentStatus.COMPLETED.value)
        if tournament.status not in allowed:
            raise ValueError(f"Tournament is {tournament.status}; matches can no longer be updated.")
        return tournament

    def _finish_if_decided(self, tournament_id: str, bracket: BracketModel):
        if bracket.champion_id is not None:
            self.tournament_service.update_tournament_status(tournament_id, TournamentStatus.COMPLETED.value)
            logger.info("Tournament %s won by team %s", tournament_id, bracket.champion_id)

    def record_match_result(
        self,
        tournament_id: str,
        match_id: str,
        winner_team_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> MatchModel:
        self._require_running(tournament_id, allow_completed=True)
        with self._editing(tournament_id) as bracket:
            advancer.record_result(bracket, match_id, winner_team_id, status)
            self._finish_if_decided(tournament_id, bracket)
        return bracket.get_match(match_id)

    def record_game(self, tournament_id: str, match_id: str, winner_team_id: str) -> MatchModel:
        self._require_running(tournament_id)
        with self._editing(tournament_id) as bracket:
            advancer.record_game(bracket, match_id, winner_team_id)
            self._finish_if_decided(tournament_id, bracket)
        return bracket.get_match(match_id)

    def advance_bye(self, tournament_id: str, match_id: str) -> MatchModel:
        self._require_running(tournament_id)
        with self._editing(tournament_id) as bracket:
            advancer.advance_bye(bracket, match_id)
        return bracket.get_match(match_id)

    def _captain_team_id(self, match: MatchModel, user_id: str) -> Optional[str]:
        user = self.user_service.get_user_by_id(user_id)
        if not user:
            return None
        steam_ids = {c.steam_id for c in user.steam_connections}
        for team in (match.team_a, match.team_b):
            if team is not None and team.captain_steam_id in steam_ids:
                return team.id
        return None

    def can_report_result(self, tournament: TournamentConfig, match: MatchModel, user_id: str) -> bool:
        """The organizer, or the captain of either seated team."""
        if tournament.organizer_id == user_id:
            return True
        return self._captain_team_id(match, user_id) is not None

    def create_lobby(self, tournament_id: str, match_id: str, user_id: str) -> LobbyModel:
        tournament = self._require_running(tournament_id)
        with self._editing(tournament_id) as bracket:
            match = bracket.get_match(match_id)
            if match is None:
                raise MatchNotFound(match_id)
            if self._captain_team_id(match, user_id) is None:
                raise PermissionError("Only a captain of one of the two teams can create the lobby.")
            if not match.is_ready:
                raise TeamsNotSeated("Both teams must be known before a lobby is created.")

            advancer.start_match(bracket, match_id)
            password = "".join(secrets.choice(LOBBY_PASSWORD_ALPHABET) for _ in range(LOBBY_PASSWORD_LENGTH))
            lobby_name = f"{match.team_a.tag} vs {match.team_b.tag} - {tournament.name}"
            match.lobby = LobbyModel(
                lobby_name=lobby_name,
                password=password,
                series_type=match.series_type,
                instructions=lobby_instructions(lobby_name, password),
                created_by=user_id,
            )
        logger.info("Lobby created for match %s by %s", match_id, user_id)
        return match.lobby
