"""
Batch driver: grant VIP access for every user x product pair.

Products come from a CSV catalog, users from the `users` collection.
Pairs are processed one at a time, users in listing order, products in file order.
"""
import sys
import logging
from collections import Counter

import pandas as pd

from vip_access.grant.grant import create_vip_access
from vip_access.store.store import DocumentStore, USERS, load_config

logger = logging.getLogger(__name__)


def read_products(csv_path) -> list:
    """Load the product catalog; every cell is kept as a string, blanks as ''."""
    logger.info("📚 Loading products from: %s", csv_path)
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")


def run_batch(store: DocumentStore, products_csv) -> list:
    """
    Run every grant sequentially. Catalog or user-listing failures propagate;
    failures inside a single grant are already folded into its result.
    """
    products = read_products(products_csv)
    users = store.list_documents(USERS)
    total = len(users) * len(products)
    logger.info("Starting VIP batch: %d user(s) x %d product(s) = %d grant(s)",
                len(users), len(products), total)

    outcomes = []
    counts = Counter()
    for user in users:
        for product in products:
            result = create_vip_access(store, user, product)
            print(f"User {user.get('name')} access to {product.get('name')}: {result}")
            counts[result["status"]] += 1
            outcomes.append({"user": user, "product": product, "result": result})

    logger.info("✅ Batch finished. success=%d fraud=%d error=%d",
                counts["success"], counts["fraud"], counts["error"])
    return outcomes


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    config = load_config()
    store = DocumentStore(config)
    try:
        run_batch(store, config.products_csv)
    except Exception as e:
        logger.exception("Error in main: %s", e)
        sys.exit(1)

    print("VIP access process completed successfully!")


if __name__ == "__main__":
    main()
