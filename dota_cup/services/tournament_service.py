import logging
import os
from typing import List, Optional

from dota_cup.core.config import settings
from dota_cup.core.ranks import is_rank_eligible, rank_display_name
from dota_cup.models.bracket_model import BracketPlayer, utcnow
from dota_cup.models.team_model import TeamModel
from dota_cup.models.tournament_model import RegisteredTeam, TournamentConfig, TournamentStatus
from dota_cup.services.json_store import JsonFileStore
from dota_cup.services.team_service import TeamService
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

TOURNAMENTS_FILE = os.path.join(settings.DATA_DIR, "tournaments.json")
MIN_TEAM_MEMBERS = 2


def registration_snapshot(team: TeamModel, rating: Optional[float]) -> RegisteredTeam:
    return RegisteredTeam(
        id=team.id,
        name=team.name,
        tag=team.tag,
        players=[
            BracketPlayer(steam_id=m.steam_id, username=m.username, is_captain=m.is_captain)
            for m in team.members
        ],
        rating=rating,
    )


class TournamentService:
    def __init__(
        self,
        data_file_path: str = TOURNAMENTS_FILE,
        user_service: Optional[UserService] = None,
        team_service: Optional[TeamService] = None,
    ):
        self.data_file_path = data_file_path
        self.store = JsonFileStore(data_file_path)
        self.user_service = user_service or UserService()
        self.team_service = team_service or TeamService(user_service=self.user_service)

    def create_tournament(self, tournament_config: TournamentConfig) -> TournamentConfig:
        organizer = self.user_service.get_user_by_id(tournament_config.organizer_id)
        if not organizer:
            raise ValueError(f"User with ID {tournament_config.organizer_id} not found.")
        if not organizer.has_steam:
            raise ValueError("Link a Steam account before organizing a tournament.")

        tournament_config.status = TournamentStatus.REGISTRATION.value
        tournament_config.teams = []
        with self.store.transaction() as tournaments:
            tournaments.append(tournament_config.model_dump(mode="json"))
        logger.info("User %s created tournament %s (%s)", organizer.id, tournament_config.id, tournament_config.name)
        return tournament_config

    def get_all_tournaments(self, status: Optional[str] = None) -> List[TournamentConfig]:
        tournaments = [TournamentConfig(**t_dict) for t_dict in self.store.load()]
        if status:
            tournaments = [t for t in tournaments if t.status == status]
        return sorted(tournaments, key=lambda t: t.created_at, reverse=True)

    def get_tournament_by_id(self, tournament_id: str) -> Optional[TournamentConfig]:
        for t_dict in self.store.load():
            if t_dict.get("id") == tournament_id:
                return TournamentConfig(**t_dict)
        return None

    def get_tournaments_by_organizer(self, organizer_id: str) -> List[TournamentConfig]:
        return [t for t in self.get_all_tournaments() if t.organizer_id == organizer_id]

    def _update_tournament(self, tournament_id: str, mutate) -> TournamentConfig:
        with self.store.transaction() as tournaments:
            for t_dict in tournaments:
                if t_dict.get("id") != tournament_id:
                    continue
                tournament = TournamentConfig(**t_dict)
                mutate(tournament)
                tournament.updated_at = utcnow()
                t_dict.clear()
                t_dict.update(tournament.model_dump(mode="json"))
                return tournament
        raise ValueError(f"Tournament with ID {tournament_id} not found.")

    def update_tournament_status(self, tournament_id: str, new_status: str) -> TournamentConfig:
        status = TournamentStatus(new_status)

        def mutate(tournament: TournamentConfig):
            tournament.status = status.value

        tournament = self._update_tournament(tournament_id, mutate)
        logger.info("Tournament %s is now %s", tournament_id, status.value)
        return tournament

    def open_registration(self, tournament_id: str, user_id: str) -> TournamentConfig:
        def mutate(tournament: TournamentConfig):
            if tournament.organizer_id != user_id:
                raise PermissionError("Only the organizer can open registration.")
            if tournament.status != TournamentStatus.DRAFT:
                raise ValueError(f"Registration cannot be opened for a tournament in status '{tournament.status}'.")
            tournament.status = TournamentStatus.REGISTRATION.value

        return self._update_tournament(tournament_id, mutate)

    def cancel_tournament(self, tournament_id: str, user_id: str) -> TournamentConfig:
        def mutate(tournament: TournamentConfig):
            if tournament.organizer_id != user_id:
                raise PermissionError("Only the organizer can cancel the tournament.")
            if tournament.status in (TournamentStatus.COMPLETED, TournamentStatus.CANCELLED):
                raise ValueError(f"Tournament is already {tournament.status}.")
            tournament.status = TournamentStatus.CANCELLED.value

        return self._update_tournament(tournament_id, mutate)

    def _check_roster(self, team: TeamModel, tournament: TournamentConfig):
        if len(team.members) < MIN_TEAM_MEMBERS:
            raise ValueError(f"A team needs at least {MIN_TEAM_MEMBERS} members to register.")
        for member in team.members:
            if not member.steam_id:
                raise ValueError(f"{member.username} has not linked a Steam account.")
            if member.rank_tier and not is_rank_eligible(member.rank_tier, tournament.rules.max_rank_tier):
                raise ValueError(
                    f"{member.username} ({rank_display_name(member.rank_tier)}) is outside the rank limit "
                    f"of {tournament.name}."
                )
            min_matches = tournament.rules.min_matches
            if member.total_matches is not None and member.total_matches < min_matches:
                raise ValueError(
                    f"{member.username} has {member.total_matches} matches; {tournament.name} needs at least {min_matches}."
                )

    def register_team(self, tournament_id: str, team_id: str, user_id: str) -> TournamentConfig:
        team = self.team_service.get_team(team_id)
        if not team:
            raise ValueError(f"Team with ID {team_id} not found.")
        if team.captain_id != user_id:
            raise PermissionError("Only the team captain can register the team.")
        team = self.team_service.refresh_member_profiles(team_id)
        snapshot = registration_snapshot(team, self.team_service.team_rating(team))

        def mutate(tournament: TournamentConfig):
            if tournament.status != TournamentStatus.REGISTRATION:
                raise ValueError("Registration for this tournament is closed.")
            if tournament.is_full:
                raise ValueError("Tournament is full.")
            if tournament.get_team(team_id):
                raise ValueError(f"Team {team.name} is already registered.")
            self._check_roster(team, tournament)
            tournament.teams.append(snapshot)

        tournament = self._update_tournament(tournament_id, mutate)
        logger.info("Team %s registered for tournament %s", team_id, tournament_id)
        return tournament

    def get_registered_teams(self, tournament_id: str) -> List[RegisteredTeam]:
        tournament = self.get_tournament_by_id(tournament_id)
        if not tournament:
            raise ValueError(f"Tournament with ID {tournament_id} not found.")
        return tournament.teams
