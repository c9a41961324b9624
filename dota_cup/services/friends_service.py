import logging
import os
from typing import List, Optional

from dota_cup.core.config import settings
from dota_cup.models.bracket_model import utcnow
from dota_cup.models.friend_model import Friendship, FriendshipStatus, FriendView
from dota_cup.models.team_model import TeamModel
from dota_cup.models.user_model import UserModel
from dota_cup.services.json_store import JsonFileStore
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

FRIENDSHIPS_FILE = os.path.join(settings.DATA_DIR, "friendships.json")


class FriendsService:
    def __init__(self, data_file_path: str = FRIENDSHIPS_FILE, user_service: Optional[UserService] = None):
        self.data_file_path = data_file_path
        self.store = JsonFileStore(data_file_path)
        self.user_service = user_service or UserService()

    def send_request(self, user_id: str, friend_username: str) -> Friendship:
        friend = self.user_service.get_user_by_username(friend_username)
        if not friend:
            raise ValueError(f"User {friend_username} not found.")
        if friend.id == user_id:
            raise ValueError("You cannot add yourself as a friend.")

        with self.store.transaction() as friendships:
            for f_dict in friendships:
                pair = {f_dict.get("requester_id"), f_dict.get("addressee_id")}
                if pair != {user_id, friend.id}:
                    continue
                status = f_dict.get("status")
                if status == FriendshipStatus.PENDING:
                    raise ValueError("A friend request is already pending.")
                if status == FriendshipStatus.ACCEPTED:
                    raise ValueError(f"You are already friends with {friend.username}.")
                if status == FriendshipStatus.BLOCKED:
                    raise ValueError(f"{friend.username} cannot be added.")
                # a rejected request may be sent again
                friendship = Friendship(id=f_dict["id"], requester_id=user_id, addressee_id=friend.id)
                f_dict.clear()
                f_dict.update(friendship.model_dump(mode="json"))
                break
            else:
                friendship = Friendship(requester_id=user_id, addressee_id=friend.id)
                friendships.append(friendship.model_dump(mode="json"))
        logger.info("User %s sent a friend request to %s", user_id, friend.id)
        return friendship

    def _answer(self, user_id: str, friendship_id: str, status: FriendshipStatus) -> Friendship:
        with self.store.transaction() as friendships:
            for f_dict in friendships:
                if f_dict.get("id") != friendship_id:
                    continue
                if f_dict.get("addressee_id") != user_id or f_dict.get("status") != FriendshipStatus.PENDING:
                    break
                f_dict["status"] = status.value
                f_dict["updated_at"] = utcnow().isoformat()
                return Friendship(**f_dict)
        raise ValueError("Friend request not found or already answered.")

    def accept_request(self, user_id: str, friendship_id: str) -> Friendship:
        return self._answer(user_id, friendship_id, FriendshipStatus.ACCEPTED)

    def reject_request(self, user_id: str, friendship_id: str) -> Friendship:
        return self._answer(user_id, friendship_id, FriendshipStatus.REJECTED)

    def remove_friend(self, user_id: str, friend_id: str):
        with self.store.transaction() as friendships:
            for index, f_dict in enumerate(friendships):
                pair = {f_dict.get("requester_id"), f_dict.get("addressee_id")}
                if pair == {user_id, friend_id} and f_dict.get("status") == FriendshipStatus.ACCEPTED:
                    del friendships[index]
                    logger.info("Users %s and %s are no longer friends", user_id, friend_id)
                    return
        raise ValueError("Friendship not found.")

    def _view(self, friendship: Friendship, other: UserModel) -> FriendView:
        connection = other.steam_connection
        return FriendView(
            friendship_id=friendship.id,
            user_id=other.id,
            username=other.username,
            steam_id=connection.steam_id if connection else None,
            avatar=connection.avatar if connection else None,
            status=friendship.status,
            since=friendship.updated_at,
        )

    def get_friends(self, user_id: str) -> List[FriendView]:
        friends = []
        for f_dict in self.store.load():
            friendship = Friendship(**f_dict)
            if friendship.status != FriendshipStatus.ACCEPTED or not friendship.involves(user_id):
                continue
            other = self.user_service.get_user_by_id(friendship.other(user_id))
            if other:
                friends.append(self._view(friendship, other))
        return friends

    def get_incoming_requests(self, user_id: str) -> List[FriendView]:
        requests = []
        for f_dict in self.store.load():
            friendship = Friendship(**f_dict)
            if friendship.status != FriendshipStatus.PENDING or friendship.addressee_id != user_id:
                continue
            requester = self.user_service.get_user_by_id(friendship.requester_id)
            if requester:
                requests.append(self._view(friendship, requester))
        return requests

    def get_inviteable_friends(self, user_id: str, team: TeamModel) -> List[FriendView]:
        """Friends with a linked Steam account who are not on the team yet."""
        return [
            friend for friend in self.get_friends(user_id)
            if friend.steam_id and not team.is_member(friend.user_id)
        ]
