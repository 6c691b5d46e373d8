import os
import uuid
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, NamedTuple, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ----------------- Collections -----------------
USERS = "users"
BLOCKED_ENTITIES = "blocked_entities"
FRAUD_LOGS = "fraud_logs"
VIP_CREDENTIALS = "vip_credentials"
SUBSCRIPTIONS = "subscriptions"
ORDERS = "orders"
VIP_ACCESS_LOGS = "vip_access_logs"
USER_ACTIVITY = "user_activity"

COLLECTIONS = [
    USERS,
    BLOCKED_ENTITIES,
    FRAUD_LOGS,
    VIP_CREDENTIALS,
    SUBSCRIPTIONS,
    ORDERS,
    VIP_ACCESS_LOGS,
    USER_ACTIVITY,
]

KEY_ATTRIBUTE = "id"


# ----------------- Config -----------------
class StoreConfig(NamedTuple):
    region: str = "us-east-2"
    endpoint_url: Optional[str] = None
    table_prefix: str = "VipAccess-"
    products_csv: str = "products.csv"


def load_config(env_file="config.env") -> StoreConfig:
    """
    Build the store configuration from the environment.
    Values in `env_file` are loaded first but never override real env vars.
    """
    if Path(env_file).exists():
        load_dotenv(env_file)

    return StoreConfig(
        region=os.environ.get("AWS_REGION", "us-east-2"),
        endpoint_url=os.environ.get("VIP_STORE_ENDPOINT") or None,
        table_prefix=os.environ.get("VIP_TABLE_PREFIX", "VipAccess-"),
        products_csv=os.environ.get("PRODUCTS_CSV", "products.csv"),
    )


# ----------------- Utilities -----------------
def to_dynamodb_compatible(obj):
    """Recursively convert floats to Decimal for DynamoDB serialization."""
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: to_dynamodb_compatible(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_dynamodb_compatible(v) for v in obj]
    return obj


def decimal_to_native(x):
    if isinstance(x, Decimal):
        if x % 1 == 0:
            return int(x)
        return float(x)
    if isinstance(x, dict):
        return {k: decimal_to_native(v) for k, v in x.items()}
    if isinstance(x, list):
        return [decimal_to_native(i) for i in x]
    return x


# ----------------- Queries -----------------
_OPERATORS = ("eq", "ne", "lt", "lte", "gt", "gte", "begins_with")


class Query(NamedTuple):
    """A single (field, operator, value) filter on a collection."""
    field: str
    operator: str
    value: Any

    @classmethod
    def equal(cls, field: str, value: Any) -> "Query":
        return cls(field, "eq", value)

    def to_condition(self):
        if self.operator not in _OPERATORS:
            raise ValueError(f"Unsupported query operator '{self.operator}' on field '{self.field}'")
        return getattr(Attr(self.field), self.operator)(to_dynamodb_compatible(self.value))


def build_filter(queries):
    """AND together a list of Query objects into one FilterExpression (or None)."""
    filter_expr = None
    for q in queries or []:
        expr = q.to_condition()
        filter_expr = expr if filter_expr is None else filter_expr & expr
    return filter_expr


# ----------------- Store -----------------
class DocumentStore:
    """
    Collection-oriented access to the DynamoDB tables backing the VIP ledger.
    One table per collection, hash key `id`.
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self._dynamodb = None

    @property
    def dynamodb(self):
        # Created on first use so a missing region/endpoint only fails when the store is touched
        if self._dynamodb is None:
            self._dynamodb = boto3.resource(
                "dynamodb",
                region_name=self.config.region,
                endpoint_url=self.config.endpoint_url,
            )
        return self._dynamodb

    def table_name(self, collection: str) -> str:
        return f"{self.config.table_prefix}{collection}"

    def table(self, collection: str):
        return self.dynamodb.Table(self.table_name(collection))

    def create_document(self, collection: str, data: dict) -> dict:
        item = dict(data)
        item.setdefault(KEY_ATTRIBUTE, str(uuid.uuid4()))
        self.table(collection).put_item(Item=to_dynamodb_compatible(item))
        logger.debug("Created %s document %s", collection, item[KEY_ATTRIBUTE])
        return item

    def get_document(self, collection: str, document_id: str) -> Optional[dict]:
        response = self.table(collection).get_item(Key={KEY_ATTRIBUTE: document_id})
        if "Item" not in response:
            return None
        return decimal_to_native(response["Item"])

    def list_documents(self, collection: str, queries=None) -> list:
        """
        Scan a collection, optionally filtered by equality/comparison queries.
        Follows LastEvaluatedKey so every matching document is returned.
        """
        scan_kwargs = {}
        filter_expr = build_filter(queries)
        if filter_expr is not None:
            scan_kwargs["FilterExpression"] = filter_expr

        table = self.table(collection)
        documents = []
        while True:
            resp = table.scan(**scan_kwargs)
            documents.extend(decimal_to_native(i) for i in resp.get("Items", []))

            last_evaluated_key = resp.get("LastEvaluatedKey")
            if not last_evaluated_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_evaluated_key

        return documents

    def delete_document(self, collection: str, document_id: str):
        self.table(collection).delete_item(Key={KEY_ATTRIBUTE: document_id})
        logger.debug("Deleted %s document %s", collection, document_id)

    def create_tables(self, collections=None):
        """Create any missing collection tables (PAY_PER_REQUEST, hash key `id`)."""
        client = self.dynamodb.meta.client
        existing = set(client.list_tables().get("TableNames", []))

        for collection in collections or COLLECTIONS:
            name = self.table_name(collection)
            if name in existing:
                logger.info("Table %s already exists", name)
                continue
            client.create_table(
                TableName=name,
                KeySchema=[{"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"}],
                AttributeDefinitions=[{"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"}],
                BillingMode="PAY_PER_REQUEST",
            )
            client.get_waiter("table_exists").wait(TableName=name)
            logger.info("✅ Created table %s", name)
