import re
import json
import math
import logging
from datetime import datetime, timezone

from vip_access.credentials.credentials import generate_credentials
from vip_access.fraud.fraud import check_fraud
from vip_access.store.store import (
    DocumentStore,
    USERS,
    FRAUD_LOGS,
    VIP_CREDENTIALS,
    SUBSCRIPTIONS,
    ORDERS,
    VIP_ACCESS_LOGS,
    USER_ACTIVITY,
    load_config,
)

logger = logging.getLogger(__name__)

DEFAULT_BILLING_INTERVAL = "one-time"
FRAUD_REASON = "Fraud detected"

# Leading number of a price string; trailing text ("19.99 USD") is ignored
_PRICE_RE = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
# DynamoDB numbers hold magnitudes between 1e-130 and 1e126
_MIN_PRICE_MAGNITUDE = 1e-128
_MAX_PRICE_MAGNITUDE = 1e125

_STORE = None


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_price(value) -> float:
    """
    Product price as a float, read from the leading number of the value.
    Missing, unparsable or out-of-range prices are 0.
    """
    if value is None:
        return 0.0
    match = _PRICE_RE.match(str(value))
    if not match:
        return 0.0
    price = float(match.group(0))
    if not math.isfinite(price) or abs(price) > _MAX_PRICE_MAGNITUDE:
        return 0.0
    if abs(price) < _MIN_PRICE_MAGNITUDE:
        return 0.0
    return price


def product_id(product: dict):
    """Catalog rows without an `id` column are identified by name."""
    return product.get("id") or product.get("name")


def billing_interval(product: dict) -> str:
    return product.get("billing_interval") or DEFAULT_BILLING_INTERVAL


def _compensate(store: DocumentStore, written: list):
    """Delete the documents already written by a failed grant, newest first."""
    for collection, document_id in reversed(written):
        try:
            store.delete_document(collection, document_id)
            logger.info("↩️  Rolled back %s document %s", collection, document_id)
        except Exception as e:
            logger.exception("❌ Could not roll back %s document %s: %s", collection, document_id, e)


def create_vip_access(store: DocumentStore, user: dict, product: dict) -> dict:
    """
    Provision VIP access for one (user, product) pair.

    Flow:
      1. Fraud screen -> on hit, write a fraud log and stop
      2. Generate credentials
      3. Write credential, subscription, order, access log, activity (in that order)

    Any failure is returned as {"status": "error"}; writes made before the
    failure are deleted again so a grant never leaves partial records behind.
    """
    user_id = user.get("id")
    prod_id = product_id(product)
    written = []

    try:
        if check_fraud(store, user):
            store.create_document(FRAUD_LOGS, {
                "user_id": user_id,
                "product_id": prod_id,
                "reason": FRAUD_REASON,
                "created_at": _iso_now(),
            })
            logger.warning("🚫 Fraud detected for user %s on product %s", user_id, prod_id)
            return {"status": "fraud", "message": "Access blocked"}

        username, password = generate_credentials()
        price = parse_price(product.get("price"))
        interval = billing_interval(product)

        steps = [
            (VIP_CREDENTIALS, {
                "user_id": user_id,
                "product_id": prod_id,
                "username": username,
                "password": password,
                "created_at": _iso_now(),
            }),
            (SUBSCRIPTIONS, {
                "user_id": user_id,
                "product_id": prod_id,
                "price": price,
                "billing_interval": interval,
                "status": "active",
                "created_at": _iso_now(),
            }),
            (ORDERS, {
                "user_id": user_id,
                "product_id": prod_id,
                "price": price,
                "billing_interval": interval,
                "status": "paid",
                "created_at": _iso_now(),
            }),
            (VIP_ACCESS_LOGS, {
                "user_id": user_id,
                "product_id": prod_id,
                "username": username,
                "access_time": _iso_now(),
            }),
            (USER_ACTIVITY, {
                "user_id": user_id,
                "activity": f"Accessed product {product.get('name')}",
                "timestamp": _iso_now(),
            }),
        ]

        for collection, data in steps:
            doc = store.create_document(collection, data)
            written.append((collection, doc["id"]))

        logger.info("✅ VIP access granted to user %s for product %s (%s)", user_id, prod_id, username)
        return {"status": "success", "username": username, "password": password}

    except Exception as e:
        logger.exception("❌ VIP access failed for user %s on product %s: %s", user_id, prod_id, e)
        _compensate(store, written)
        return {"status": "error", "message": str(e)}


def _get_store():
    global _STORE
    if _STORE is None:
        _STORE = DocumentStore(load_config())
    return _STORE


_STATUS_CODES = {"success": 200, "fraud": 403, "error": 500}


def lambda_handler(event, context):
    """
    Grant VIP access for one user and one product.
    URL pattern: POST /vip/access
    Body: {"user_id": "u1", "product": {"name": "...", "price": "...", "billing_interval": "..."}}
    """
    body_str = event.get("body")
    if not body_str:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "Missing body"})
        }

    try:
        body = json.loads(body_str)
    except json.JSONDecodeError:
        body = None
    if not isinstance(body, dict):
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "Body must be a JSON object"})
        }

    user_id = body.get("user_id")
    product = body.get("product")
    if not isinstance(user_id, str) or not user_id or not isinstance(product, dict):
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "user_id and product required"})
        }

    try:
        store = _get_store()
        user = store.get_document(USERS, user_id)
    except Exception as e:
        logger.exception(f"Error loading user {user_id}: {str(e)}")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": "Internal server error"})
        }

    if user is None:
        return {
            "statusCode": 404,
            "body": json.dumps({"error": "User not found"})
        }

    result = create_vip_access(store, user, product)
    return {
        "statusCode": _STATUS_CODES[result["status"]],
        "body": json.dumps(result)
    }
