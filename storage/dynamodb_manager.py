"""Shared DynamoDB table access for the event stores."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def to_dynamodb(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None attributes and convert floats to Decimal for boto3."""
    item = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, float):
            value = Decimal(str(value))
        item[key] = value
    return item


def from_dynamodb(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert boto3 Decimals back into ints/floats."""
    result = {}
    for key, value in item.items():
        if isinstance(value, Decimal):
            value = int(value) if value == value.to_integral_value() else float(value)
        result[key] = value
    return result


def is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


class DynamoDBManager:
    """Base manager for one DynamoDB table."""

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region; boto3's default resolution applies when None
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized {type(self).__name__} for table: {table_name}")

    def scan_items(self, filter_expression=None) -> List[Dict[str, Any]]:
        """
        Scan the whole table, following pagination.

        Args:
            filter_expression: Optional boto3 condition applied server-side

        Returns:
            Items with Decimals converted to Python numbers
        """
        kwargs = {}
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression

        try:
            response = self.table.scan(**kwargs)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                    **kwargs
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table {self.table_name}: {e}")
            raise

        logger.info(f"Retrieved {len(items)} items from {self.table_name}")
        return [from_dynamodb(item) for item in items]
