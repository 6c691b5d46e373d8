import logging

from vip_access.store.store import DocumentStore, Query, BLOCKED_ENTITIES

logger = logging.getLogger(__name__)

DISPOSABLE_EMAIL_DOMAIN = "@tempmail.com"


def check_fraud(store: DocumentStore, user: dict) -> bool:
    """
    Screen a user before provisioning.
      - no email, or a disposable (@tempmail.com) address -> fraud
      - user id present in the blocklist -> fraud
    Store errors are not caught here; the caller decides what a failed lookup means.
    """
    email = user.get("email")
    if not email or email.endswith(DISPOSABLE_EMAIL_DOMAIN):
        logger.info("Fraud rule hit for user %s: missing or disposable email", user.get("id"))
        return True

    blocked = store.list_documents(BLOCKED_ENTITIES, [Query.equal("user_id", user.get("id"))])
    if blocked:
        logger.info("Fraud rule hit for user %s: blocklisted (%d entries)", user.get("id"), len(blocked))
        return True

    return False
