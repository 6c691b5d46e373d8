import sys
import logging

from sample_data import USERS, BLOCKED_ENTITIES
from vip_access.store.store import DocumentStore, USERS as USERS_COLLECTION, BLOCKED_ENTITIES as BLOCKED_COLLECTION, load_config

store = DocumentStore(load_config())


def create_tables():
    print("Creating VIP access tables...")
    store.create_tables()
    print("Tables ready!")


def seed_users_table():
    print(f"Seeding {store.table_name(USERS_COLLECTION)}...")

    for user in USERS:
        store.create_document(USERS_COLLECTION, user)

    print("Users table seeded successfully!")


def seed_blocklist_table():
    print(f"Seeding {store.table_name(BLOCKED_COLLECTION)}...")

    for entry in BLOCKED_ENTITIES:
        store.create_document(BLOCKED_COLLECTION, entry)

    print("Blocklist table seeded successfully!")


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if len(sys.argv) < 2:
        print("Usage: python seed_db.py [tables|users|blocklist|all]")
        sys.exit(1)

    option = sys.argv[1].lower()

    if option == 'tables' or option == 'all':
        create_tables()

    if option == 'users' or option == 'all':
        seed_users_table()

    if option == 'blocklist' or option == 'all':
        seed_blocklist_table()

    print("\nDatabase seeding completed!")
