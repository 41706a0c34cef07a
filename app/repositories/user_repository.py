"""
Repository for the accounts stored in users.json
"""

import os
import re
import threading

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from constants import DEFAULT_ADMIN_PASSWORD, MIN_PASSWORD_LENGTH, USERNAME_PATTERN
from exceptions import AuthenticationException, NotFoundException, ValidationException
from json_store import ensure_json_file, read_json, write_json
from utils import now_iso

logger = structlog.get_logger("main")

HASH_METHOD = "pbkdf2:sha256"

# Stored hashes must be in werkzeug "<method>:<params>$<salt>$<hash>" form
SUPPORTED_HASH_PREFIXES = ("pbkdf2:", "scrypt:")

_username_re = re.compile(USERNAME_PATTERN)


def hash_password(password):
    return generate_password_hash(password, method=HASH_METHOD)


def is_supported_hash(password_hash):
    return isinstance(password_hash, str) and password_hash.startswith(SUPPORTED_HASH_PREFIXES)


def password_matches(password_hash, password):
    """False for a wrong password and for a stored hash werkzeug cannot read"""
    try:
        return check_password_hash(password_hash, password)
    except ValueError as e:
        logger.error(f"Unreadable password hash in users file: {e}")
        return False


def sanitize_user(record):
    """Copy of a user record without its password hash"""
    return {k: v for k, v in record.items() if k != "passwordHash"}


def validate_password(password, field="Password"):
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")


def validate_username(username):
    if not isinstance(username, str) or not _username_re.fullmatch(username):
        raise ValidationException("Username can only contain letters, numbers, underscores, and hyphens")


class UserRepository:
    """Credential store over users.json"""

    def __init__(self, path):
        self.path = path
        self.lock = threading.RLock()
        self._dummy_hash = None

    def _load(self):
        return read_json(self.path)

    def _save(self, users):
        write_json(self.path, users)

    def _find_index(self, users, username):
        for index, user in enumerate(users):
            if user.get("username") == username:
                return index
        return -1

    def _check_dummy(self, password):
        # Unknown usernames still pay for one hash check
        if self._dummy_hash is None:
            self._dummy_hash = hash_password(DEFAULT_ADMIN_PASSWORD + "-unused")
        check_password_hash(self._dummy_hash, password)

    def seed_default_admin(self, username, password=None, password_hash=None):
        """
        Create users.json with a single admin account if it does not exist.

        Returns:
            True if the file was created
        """
        if os.path.exists(self.path):
            return False

        if not password_hash:
            if not password:
                logger.warning(
                    f"Default admin user created. Username: {username}, Password: {DEFAULT_ADMIN_PASSWORD}. "
                    "PLEASE CHANGE THE PASSWORD IMMEDIATELY!"
                )
                password = DEFAULT_ADMIN_PASSWORD
            password_hash = hash_password(password)
        elif not is_supported_hash(password_hash):
            raise ValidationException("ADMIN_PASSWORD_HASH must be a werkzeug pbkdf2 or scrypt hash")

        created = ensure_json_file(self.path, [{
            "username": username,
            "passwordHash": password_hash,
            "createdAt": now_iso(),
        }])
        if created:
            logger.info(f"Initialized users file with admin user {username}")
        return created

    def list(self):
        return [sanitize_user(u) for u in self._load()]

    def get(self, username):
        users = self._load()
        index = self._find_index(users, username)
        if index == -1:
            return None
        return sanitize_user(users[index])

    def verify(self, username, password):
        """True only for an existing username with a matching password"""
        if not username or not isinstance(password, str):
            return False

        users = self._load()
        index = self._find_index(users, username)
        if index == -1:
            self._check_dummy(password)
            return False

        return password_matches(users[index].get("passwordHash", ""), password)

    def record_login(self, username):
        with self.lock:
            users = self._load()
            index = self._find_index(users, username)
            if index == -1:
                return
            users[index]["lastLogin"] = now_iso()
            self._save(users)

    def create(self, username, password, created_by=None):
        validate_username(username)
        validate_password(password)

        with self.lock:
            users = self._load()
            if self._find_index(users, username) != -1:
                raise ValidationException("Username already exists")

            new_user = {
                "username": username,
                "passwordHash": hash_password(password),
                "createdAt": now_iso(),
            }
            if created_by:
                new_user["createdBy"] = created_by

            users.append(new_user)
            self._save(users)

        logger.info(f"Created user {username}")
        return sanitize_user(new_user)

    def change_password(self, username, current_password, new_password):
        if not isinstance(current_password, str) or not current_password:
            raise ValidationException("Current password required")
        validate_password(new_password, field="New password")

        with self.lock:
            users = self._load()
            index = self._find_index(users, username)
            if index == -1:
                raise NotFoundException("User not found")

            if not password_matches(users[index].get("passwordHash", ""), current_password):
                raise AuthenticationException("Current password is incorrect")

            users[index]["passwordHash"] = hash_password(new_password)
            users[index]["passwordChangedAt"] = now_iso()
            self._save(users)

        logger.info(f"Password changed for user {username}")

    def reset_password(self, username, new_password, reset_by=None):
        validate_password(new_password)

        with self.lock:
            users = self._load()
            index = self._find_index(users, username)
            if index == -1:
                raise NotFoundException("User not found")

            users[index]["passwordHash"] = hash_password(new_password)
            users[index]["passwordChangedAt"] = now_iso()
            if reset_by:
                users[index]["passwordResetBy"] = reset_by
            self._save(users)

        logger.info(f"Password reset for user {username} by {reset_by}")

    def delete(self, username, acting_username=None):
        if acting_username is not None and username == acting_username:
            raise ValidationException("Cannot delete your own account")

        with self.lock:
            users = self._load()
            if len(users) <= 1:
                raise ValidationException("Cannot delete the last user")

            remaining = [u for u in users if u.get("username") != username]
            if len(remaining) == len(users):
                raise NotFoundException("User not found")

            self._save(remaining)

        logger.info(f"Deleted user {username} (by {acting_username})")
