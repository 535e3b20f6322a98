"""Shared fixtures: fake AWS credentials and moto-backed tables."""
import os
from unittest.mock import Mock, patch

import boto3
import pytest
from moto import mock_aws

REGION = 'us-west-2'

ID_KEYED_TABLES = ('user-events', 'venues', 'music-videos', 'artist-applications', 'donations')


@pytest.fixture(autouse=True)
def aws_env():
    """Keep boto3 away from real credentials and pin the handlers' settings."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': REGION,
        'AWS_REGION': REGION,
        'LOG_LEVEL': 'DEBUG',
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


def _create_table(dynamodb, name, key_schema):
    return dynamodb.create_table(
        TableName=name,
        KeySchema=[{'AttributeName': attr, 'KeyType': kind} for attr, kind in key_schema],
        AttributeDefinitions=[{'AttributeName': attr, 'AttributeType': 'S'} for attr, _ in key_schema],
        BillingMode='PAY_PER_REQUEST',
    )


@pytest.fixture
def dynamodb():
    """Create every table the functions use, with their default names."""
    with mock_aws():
        resource = boto3.resource('dynamodb', region_name=REGION)
        _create_table(resource, 'events', [('api_source', 'HASH'), ('external_id', 'RANGE')])
        _create_table(resource, 'api-sync-log', [('log_id', 'HASH')])
        for name in ID_KEYED_TABLES:
            _create_table(resource, name, [('id', 'HASH')])
        yield resource


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.aws_request_id = 'test-request-id'
    return context
