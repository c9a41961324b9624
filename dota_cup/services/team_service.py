import logging
import os
from typing import List, Optional

from dota_cup.core.config import settings
from dota_cup.models.bracket_model import utcnow
from dota_cup.models.team_model import TeamMember, TeamModel
from dota_cup.models.user_model import UserModel
from dota_cup.services.json_store import JsonFileStore
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

TEAMS_FILE = os.path.join(settings.DATA_DIR, "teams.json")


def member_from_user(user: UserModel, is_captain: bool = False) -> TeamMember:
    connection = user.steam_connection
    return TeamMember(
        user_id=user.id,
        username=user.username,
        steam_id=connection.steam_id if connection else None,
        rank_tier=connection.rank_tier if connection else None,
        total_matches=connection.total_matches if connection else None,
        is_captain=is_captain,
    )


class TeamService:
    def __init__(self, data_file_path: str = TEAMS_FILE, user_service: Optional[UserService] = None):
        self.data_file_path = data_file_path
        self.store = JsonFileStore(data_file_path)
        self.user_service = user_service or UserService()

    def _require_user(self, user_id: str) -> UserModel:
        user = self.user_service.get_user_by_id(user_id)
        if not user:
            raise ValueError(f"User with ID {user_id} not found.")
        return user

    def create_team(self, name: str, tag: str, captain_user_id: str) -> TeamModel:
        name, tag = name.strip(), tag.strip().upper()
        if not 3 <= len(name) <= 20:
            raise ValueError("Team name must be between 3 and 20 characters.")
        if not 2 <= len(tag) <= 5:
            raise ValueError("Team tag must be between 2 and 5 characters.")

        captain = self._require_user(captain_user_id)
        if not captain.has_steam:
            raise ValueError("Link a Steam account before creating a team.")

        team = TeamModel(
            name=name,
            tag=tag,
            captain_id=captain.id,
            members=[member_from_user(captain, is_captain=True)],
        )
        with self.store.transaction() as teams:
            for t_dict in teams:
                if t_dict.get("status") == "disbanded":
                    continue
                if t_dict.get("name", "").lower() == name.lower():
                    raise ValueError(f"A team named {name} already exists.")
                if t_dict.get("tag", "").upper() == tag:
                    raise ValueError(f"The tag {tag} is already taken.")
            teams.append(team.model_dump(mode="json"))
        logger.info("User %s created team %s [%s]", captain.id, team.id, team.tag)
        return team

    def get_team(self, team_id: str) -> Optional[TeamModel]:
        for t_dict in self.store.load():
            if t_dict.get("id") == team_id and t_dict.get("status") != "disbanded":
                return TeamModel(**t_dict)
        return None

    def get_user_teams(self, user_id: str) -> List[TeamModel]:
        teams = []
        for t_dict in self.store.load():
            if t_dict.get("status") == "disbanded":
                continue
            if any(m.get("user_id") == user_id for m in t_dict.get("members", [])):
                teams.append(TeamModel(**t_dict))
        return teams

    def _update_team(self, team_id: str, mutate) -> TeamModel:
        with self.store.transaction() as teams:
            for t_dict in teams:
                if t_dict.get("id") != team_id or t_dict.get("status") == "disbanded":
                    continue
                team = TeamModel(**t_dict)
                mutate(team)
                team.updated_at = utcnow()
                t_dict.clear()
                t_dict.update(team.model_dump(mode="json"))
                return team
        raise ValueError(f"Team with ID {team_id} not found.")

    def add_member(self, team_id: str, user_id: str) -> TeamModel:
        user = self._require_user(user_id)

        def mutate(team: TeamModel):
            if team.is_member(user_id):
                raise ValueError(f"{user.username} is already a member of {team.name}.")
            if len(team.members) >= settings.MAX_TEAM_SIZE:
                raise ValueError(f"Team {team.name} is full.")
            team.members.append(member_from_user(user))

        team = self._update_team(team_id, mutate)
        logger.info("User %s joined team %s", user_id, team_id)
        return team

    def remove_member(self, team_id: str, user_id: str, acting_user_id: str) -> TeamModel:
        def mutate(team: TeamModel):
            if team.captain_id != acting_user_id:
                raise PermissionError("Only the team captain can remove members.")
            if user_id == team.captain_id:
                raise ValueError("The captain cannot be removed from the team.")
            if not team.is_member(user_id):
                raise ValueError("User is not a member of this team.")
            team.members = [m for m in team.members if m.user_id != user_id]

        team = self._update_team(team_id, mutate)
        logger.info("User %s removed from team %s", user_id, team_id)
        return team

    def delete_team(self, team_id: str, acting_user_id: str) -> TeamModel:
        def mutate(team: TeamModel):
            if team.captain_id != acting_user_id:
                raise PermissionError("Only the team captain can delete the team.")
            team.status = "disbanded"

        team = self._update_team(team_id, mutate)
        logger.info("Team %s disbanded by %s", team_id, acting_user_id)
        return team

    def refresh_member_profiles(self, team_id: str) -> TeamModel:
        """Re-reads Steam id, rank and match count of every member from their user record."""
        def mutate(team: TeamModel):
            refreshed = []
            for member in team.members:
                user = self.user_service.get_user_by_id(member.user_id)
                if user is None:
                    refreshed.append(member)
                    continue
                updated = member_from_user(user, is_captain=member.is_captain)
                updated.joined_at = member.joined_at
                refreshed.append(updated)
            team.members = refreshed

        return self._update_team(team_id, mutate)

    @staticmethod
    def team_rating(team: TeamModel) -> Optional[float]:
        tiers = [m.rank_tier for m in team.members if m.rank_tier]
        if not tiers:
            return None
        return round(sum(tiers) / len(tiers), 2)
