"""
Model: User
The logged-in account as seen by Flask-Login. Persisted records are plain
dicts in users.json, see repositories/user_repository.py
"""

from flask_login import UserMixin


class User(UserMixin):
    def __init__(self, username, created_at=None, last_login=None):
        self.username = username
        self.created_at = created_at
        self.last_login = last_login

    def get_id(self):
        return self.username

    @classmethod
    def from_record(cls, record):
        return cls(
            username=record["username"],
            created_at=record.get("createdAt"),
            last_login=record.get("lastLogin"),
        )

    def __repr__(self):
        return f"<User {self.username}>"
