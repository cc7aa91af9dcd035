"""
DynamoDB Credential Store - AWS-native credential storage.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import StorageError


class DynamoDBCredentialStore(CredentialStorePort):
    """
    DynamoDB-backed credential storage.

    boto3 is synchronous; calls run in a worker thread.
    Requires: pip install boto3
    """

    def __init__(
        self,
        account_id: str,
        table_name: str = "pairlink-credentials",
        region_name: str = "us-east-1",
        table=None,
    ):
        """
        Initialize DynamoDB credential store.

        Args:
            account_id: Account the credentials belong to
            table_name: DynamoDB table name
            region_name: AWS region
            table: Pre-built boto3 Table resource (skips boto3 setup)

        Table schema:
            - Partition key: account_id (S)
            - credentials: JSON document (S)
            - updated_at: ISO timestamp (S)
        """
        try:
            import boto3
            from botocore.exceptions import BotoCoreError, ClientError
        except ImportError:
            raise ImportError("boto3 package required: pip install boto3")

        self._account_id = account_id
        self._table_name = table_name
        self._aws_errors = (BotoCoreError, ClientError)

        if table is None:
            dynamodb = boto3.resource("dynamodb", region_name=region_name)
            table = dynamodb.Table(table_name)
        self._table = table

    async def load(self) -> Credentials:
        """Load credentials from DynamoDB."""
        try:
            response = await asyncio.to_thread(
                self._table.get_item, Key={"account_id": self._account_id}
            )
        except self._aws_errors as e:
            raise StorageError(f"Cannot read credentials from {self._table_name}: {e}") from e

        if "Item" not in response:
            return Credentials.fresh()

        return self._item_to_credentials(response["Item"])

    async def save(self, credentials: Credentials) -> None:
        """Store credentials in DynamoDB."""
        item = self._credentials_to_item(credentials)
        try:
            await asyncio.to_thread(self._table.put_item, Item=item)
        except self._aws_errors as e:
            raise StorageError(f"Cannot write credentials to {self._table_name}: {e}") from e

    async def clear(self) -> None:
        """Delete the credentials item."""
        try:
            await asyncio.to_thread(
                self._table.delete_item, Key={"account_id": self._account_id}
            )
        except self._aws_errors as e:
            raise StorageError(f"Cannot delete credentials from {self._table_name}: {e}") from e

    def _credentials_to_item(self, credentials: Credentials) -> Dict[str, Any]:
        """Convert Credentials to DynamoDB item."""
        return {
            "account_id": self._account_id,
            "registered": credentials.registered,
            "credentials": json.dumps(credentials.to_dict()),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    def _item_to_credentials(self, item: Dict[str, Any]) -> Credentials:
        """Convert DynamoDB item to Credentials."""
        try:
            return Credentials.from_dict(json.loads(item.get("credentials", "{}")))
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            raise StorageError(f"Corrupt credentials item for {self._account_id}: {e}") from e
