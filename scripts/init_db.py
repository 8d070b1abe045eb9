import argparse
import logging
import os
import sys
import traceback

# Adjust path to import from podsync
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from podsync.config import Config
from podsync.db.factory import create_database_from_config
from podsync.db.repository import SQLAlchemyAccountRepository

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def initialize_database(config: Config, usernames):
    """
    Create all tables defined in the models and the given user accounts.
    """
    database = create_database_from_config(config)
    try:
        logging.info("Creating tables if they don't exist...")
        database.create_tables()

        with database.transaction() as session:
            accounts = SQLAlchemyAccountRepository(session)
            for username in usernames:
                accounts.get_or_create_user(username)

        logging.info("Database initialization complete. All tables created successfully.")
    finally:
        database.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the database. Creates tables if they don't exist.")
    parser.add_argument("--yes", "-y", action="store_true", help="Bypass confirmation prompt.")
    parser.add_argument("--env-file", help="Path to a custom .env file", default=None)
    parser.add_argument("--user", action="append", default=[], help="Create this user account (repeatable).")
    args = parser.parse_args()

    try:
        logging.info("Starting database initialization script.")
        config = Config(env_file=args.env_file)
        logging.info(f"Using database: {config.database_location}")

        if not args.yes:
            confirm = input("Initialize the database? This will create tables but not delete existing data. (y/n): ")
            if confirm.lower() != 'y':
                logging.info("Database initialization cancelled by user.")
                sys.exit(0)

        usernames = list(args.user)
        if config.ADMIN_USERNAME:
            usernames.append(config.ADMIN_USERNAME)
        initialize_database(config, usernames)

    except Exception:
        logging.error("A critical error occurred during database initialization.")
        logging.error(traceback.format_exc())
        sys.exit(1)
