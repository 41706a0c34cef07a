import sys
import os
import argparse
import logging

# Add parent directory to path so we can import app modules
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
sys.path.append(parent_dir)

from constants import USERS_FILENAME
from exceptions import CmsException
from repositories.user_repository import UserRepository, validate_password
from settings import load_settings

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def reset_password(username, password, data_dir=None):
    """Reset a user's password, creating the account if it does not exist."""
    logger.info(f"Attempting to reset password for user: {username}")

    data_dir = data_dir or load_settings()["paths"]["data_dir"]
    users = UserRepository(os.path.join(data_dir, USERS_FILENAME))

    try:
        validate_password(password)
        if not users.seed_default_admin(username, password=password):
            if users.get(username) is None:
                logger.warning(f"User '{username}' not found. Creating new user.")
                users.create(username, password, created_by="reset_password script")
            else:
                users.reset_password(username, password, reset_by="reset_password script")

        logger.info("Password updated successfully.")
        return True

    except CmsException as e:
        logger.error(f"Failed to reset password: {e.message}")
        return False


def main(argv=None):
    parser = argparse.ArgumentParser(description="Reset user password")
    parser.add_argument("username", help="Username to reset")
    parser.add_argument("password", help="New password")
    parser.add_argument("--data-dir", help="Data directory holding users.json")

    args = parser.parse_args(argv)

    if reset_password(args.username, args.password, data_dir=args.data_dir):
        print("SUCCESS")
        return 0
    print("FAILURE")
    return 1


if __name__ == "__main__":
    sys.exit(main())
