import logging
import os
from typing import List, Optional

from dota_cup.core.config import settings
from dota_cup.models.bracket_model import utcnow
from dota_cup.models.team_model import InviteStatus, TeamInvite, TeamModel
from dota_cup.services.json_store import JsonFileStore
from dota_cup.services.team_service import TeamService
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

INVITES_FILE = os.path.join(settings.DATA_DIR, "team_invites.json")


class TeamInviteService:
    def __init__(
        self,
        data_file_path: str = INVITES_FILE,
        team_service: Optional[TeamService] = None,
        user_service: Optional[UserService] = None,
    ):
        self.data_file_path = data_file_path
        self.store = JsonFileStore(data_file_path)
        self.user_service = user_service or UserService()
        self.team_service = team_service or TeamService(user_service=self.user_service)

    def _require_team(self, team_id: str) -> TeamModel:
        team = self.team_service.get_team(team_id)
        if not team:
            raise ValueError(f"Team with ID {team_id} not found.")
        return team

    def get_invite(self, invite_id: str) -> Optional[TeamInvite]:
        for i_dict in self.store.load():
            if i_dict.get("id") == invite_id:
                return TeamInvite(**i_dict)
        return None

    def invite_player(
        self,
        team_id: str,
        invited_user_id: str,
        invited_by_user_id: str,
        message: Optional[str] = None,
    ) -> TeamInvite:
        team = self._require_team(team_id)
        if team.captain_id != invited_by_user_id:
            raise PermissionError("Only the team captain can invite players.")
        invitee = self.user_service.get_user_by_id(invited_user_id)
        if not invitee:
            raise ValueError(f"User with ID {invited_user_id} not found.")
        if team.is_member(invited_user_id):
            raise ValueError(f"{invitee.username} is already a member of {team.name}.")
        if len(team.members) >= settings.MAX_TEAM_SIZE:
            raise ValueError(f"Team {team.name} is full.")
        if not invitee.has_steam:
            raise ValueError(f"{invitee.username} has not linked a Steam account.")

        invite = TeamInvite.expiring_in(
            settings.TEAM_INVITE_TTL_DAYS,
            team_id=team.id,
            team_name=team.name,
            team_tag=team.tag,
            invited_user_id=invited_user_id,
            invited_by_user_id=invited_by_user_id,
            message=message,
        )
        with self.store.transaction() as invites:
            for i_dict in invites:
                if (
                    i_dict.get("team_id") == team_id
                    and i_dict.get("invited_user_id") == invited_user_id
                    and i_dict.get("status") == InviteStatus.PENDING
                ):
                    raise ValueError(f"{invitee.username} already has a pending invite to {team.name}.")
            invites.append(invite.model_dump(mode="json"))
        logger.info("Team %s invited user %s", team_id, invited_user_id)
        return invite

    def _respond(self, invite_id: str, decide) -> TeamInvite:
        with self.store.transaction() as invites:
            for i_dict in invites:
                if i_dict.get("id") != invite_id:
                    continue
                invite = TeamInvite(**i_dict)
                decide(invite, invites)
                invite.responded_at = utcnow()
                i_dict.clear()
                i_dict.update(invite.model_dump(mode="json"))
                return invite
        raise ValueError(f"Invite with ID {invite_id} not found.")

    def accept_invite(self, invite_id: str, user_id: str) -> TeamInvite:
        expired = []

        def decide(invite: TeamInvite, invites: list):
            if invite.invited_user_id != user_id:
                raise PermissionError("This invite belongs to another user.")
            if invite.status != InviteStatus.PENDING:
                raise ValueError(f"Invite is already {invite.status}.")
            if invite.is_expired:
                invite.status = InviteStatus.EXPIRED.value
                expired.append(invite.id)
                return
            # add_member re-checks capacity and membership
            self.team_service.add_member(invite.team_id, user_id)
            invite.status = InviteStatus.ACCEPTED.value
            now = utcnow().isoformat()
            for other in invites:
                if (
                    other.get("id") != invite.id
                    and other.get("invited_user_id") == user_id
                    and other.get("status") == InviteStatus.PENDING
                ):
                    other["status"] = InviteStatus.REJECTED.value
                    other["responded_at"] = now

        invite = self._respond(invite_id, decide)
        if expired:
            raise ValueError("This invite has expired.")
        logger.info("User %s accepted invite %s to team %s", user_id, invite_id, invite.team_id)
        return invite

    def reject_invite(self, invite_id: str, user_id: str) -> TeamInvite:
        def decide(invite: TeamInvite, invites: list):
            if invite.invited_user_id != user_id:
                raise PermissionError("This invite belongs to another user.")
            if invite.status != InviteStatus.PENDING:
                raise ValueError(f"Invite is already {invite.status}.")
            invite.status = InviteStatus.REJECTED.value

        return self._respond(invite_id, decide)

    def cancel_invite(self, invite_id: str, user_id: str) -> TeamInvite:
        def decide(invite: TeamInvite, invites: list):
            if invite.invited_by_user_id != user_id:
                raise PermissionError("Only the player who sent the invite can cancel it.")
            if invite.status != InviteStatus.PENDING:
                raise ValueError(f"Invite is already {invite.status}.")
            invite.status = InviteStatus.CANCELLED.value

        return self._respond(invite_id, decide)

    def get_user_invites(self, user_id: str) -> List[TeamInvite]:
        """Pending, unexpired invites addressed to the user."""
        invites = []
        for i_dict in self.store.load():
            if i_dict.get("invited_user_id") != user_id or i_dict.get("status") != InviteStatus.PENDING:
                continue
            invite = TeamInvite(**i_dict)
            if not invite.is_expired:
                invites.append(invite)
        return invites

    def get_team_invites(self, team_id: str, user_id: str) -> List[TeamInvite]:
        team = self._require_team(team_id)
        if team.captain_id != user_id:
            raise PermissionError("Only the team captain can view the team's invites.")
        return [TeamInvite(**i_dict) for i_dict in self.store.load() if i_dict.get("team_id") == team_id]
