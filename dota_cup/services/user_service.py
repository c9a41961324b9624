import logging
import os
from typing import List, Optional

from dota_cup.core.config import settings
from dota_cup.core.security import get_password_hash, verify_password
from dota_cup.models.bracket_model import utcnow
from dota_cup.models.user_model import SteamConnection, UserModel, UserRole
from dota_cup.services.json_store import JsonFileStore

logger = logging.getLogger(__name__)

USERS_FILE = os.path.join(settings.DATA_DIR, "users.json")
MIN_PASSWORD_LENGTH = 6


class UserService:
    def __init__(self, data_file_path: str = USERS_FILE):
        self.data_file_path = data_file_path
        self.store = JsonFileStore(data_file_path)

    def create_user(self, user_data: UserModel) -> UserModel:
        with self.store.transaction() as users:
            for u_dict in users:
                if u_dict.get("email", "").lower() == user_data.email.lower():
                    raise ValueError(f"User with email {user_data.email} already exists.")
                if u_dict.get("username", "").lower() == user_data.username.lower():
                    raise ValueError(f"Username {user_data.username} is already taken.")
            users.append(user_data.model_dump(mode="json"))
        logger.info("Created user %s (%s)", user_data.id, user_data.username)
        return user_data

    def register_user(self, email: str, username: str, password: str, role: str = UserRole.PLAYER) -> UserModel:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        user = UserModel(
            email=email,
            username=username.strip(),
            hashed_password=get_password_hash(password),
            role=role,
        )
        return self.create_user(user)

    def authenticate_user(self, login: str, password: str) -> Optional[UserModel]:
        """Accepts either the email or the username as login."""
        user = self.get_user_by_email(login) or self.get_user_by_username(login)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def get_user_by_id(self, user_id: str) -> Optional[UserModel]:
        for user_dict in self.store.load():
            if user_dict.get("id") == user_id:
                return UserModel(**user_dict)
        return None

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        for user_dict in self.store.load():
            if user_dict.get("email", "").lower() == email.lower():
                return UserModel(**user_dict)
        return None

    def get_user_by_username(self, username: str) -> Optional[UserModel]:
        for user_dict in self.store.load():
            if user_dict.get("username", "").lower() == username.lower():
                return UserModel(**user_dict)
        return None

    def is_username_available(self, username: str) -> bool:
        return self.get_user_by_username(username) is None

    def search_users(self, query: str, limit: int = 10, exclude_user_id: Optional[str] = None) -> List[UserModel]:
        query = query.strip().lower()
        if not query:
            return []
        found = []
        for user_dict in self.store.load():
            if user_dict.get("id") == exclude_user_id or not user_dict.get("is_active", True):
                continue
            if query in user_dict.get("username", "").lower():
                found.append(UserModel(**user_dict))
            if len(found) >= limit:
                break
        return found

    def find_user_by_steam_id(self, steam_id: str) -> Optional[UserModel]:
        for user_dict in self.store.load():
            for connection in user_dict.get("steam_connections", []):
                if connection.get("steam_id") == steam_id:
                    return UserModel(**user_dict)
        return None

    def connect_steam_account(self, user_id: str, connection: SteamConnection) -> UserModel:
        with self.store.transaction() as users:
            target = None
            for user_dict in users:
                linked = [c.get("steam_id") for c in user_dict.get("steam_connections", [])]
                if connection.steam_id in linked and user_dict.get("id") != user_id:
                    raise ValueError("This Steam account is already linked to another user.")
                if user_dict.get("id") == user_id:
                    target = user_dict
            if target is None:
                raise ValueError(f"User with ID {user_id} not found.")

            user = UserModel(**target)
            user.steam_connections = [c for c in user.steam_connections if c.steam_id != connection.steam_id]
            user.steam_connections.insert(0, connection)
            user.updated_at = utcnow()
            target.clear()
            target.update(user.model_dump(mode="json"))
        logger.info("Linked Steam account %s to user %s", connection.steam_id, user_id)
        return user

    def disconnect_steam_account(self, user_id: str, steam_id: str) -> UserModel:
        with self.store.transaction() as users:
            for user_dict in users:
                if user_dict.get("id") != user_id:
                    continue
                user = UserModel(**user_dict)
                remaining = [c for c in user.steam_connections if c.steam_id != steam_id]
                if len(remaining) == len(user.steam_connections):
                    raise ValueError("Steam account is not linked to this user.")
                user.steam_connections = remaining
                user.updated_at = utcnow()
                user_dict.clear()
                user_dict.update(user.model_dump(mode="json"))
                logger.info("Unlinked Steam account %s from user %s", steam_id, user_id)
                return user
        raise ValueError(f"User with ID {user_id} not found.")
