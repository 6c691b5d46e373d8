import json
import secrets
import logging

from vip_access.store.store import DocumentStore, Query, VIP_CREDENTIALS, load_config

logger = logging.getLogger(__name__)

USERNAME_PREFIX = "VIP"

_STORE = None


def generate_credentials():
    """
    Generate a username/password pair for one VIP grant.
    username = VIP + 6 hex chars, password = 12 hex chars.
    Not checked for uniqueness against stored credentials.
    """
    username = USERNAME_PREFIX + secrets.token_hex(3)
    password = secrets.token_hex(6)
    return username, password


def validate_credentials(store: DocumentStore, username: str, password: str) -> bool:
    matches = store.list_documents(VIP_CREDENTIALS, [
        Query.equal("username", username),
        Query.equal("password", password),
    ])
    return len(matches) > 0


def _get_store():
    global _STORE
    if _STORE is None:
        _STORE = DocumentStore(load_config())
    return _STORE


def lambda_handler(event, context):
    """
    Validate a VIP username/password pair.
    URL pattern: POST /vip/validate
    Body: {"username": "...", "password": "..."}
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

    username = body.get("username")
    password = body.get("password")
    if not username or not password:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "username and password required"})
        }

    try:
        valid = validate_credentials(_get_store(), username, password)
    except Exception as e:
        logger.exception(f"Error validating credentials: {str(e)}")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": "Internal server error"})
        }

    return {
        "statusCode": 200,
        "body": json.dumps({"valid": valid})
    }
