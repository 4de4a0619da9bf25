from unittest import mock

import pytest

from acme_connector import client
from acme_connector._internal.tests import test_util


@pytest.fixture
def fake_ca():
    return test_util.directory_ca()


@pytest.fixture
def net(fake_ca):
    network = client.ClientNetwork(test_util.BASE_URL)
    network.session = mock.MagicMock()
    network.session.request.side_effect = fake_ca
    return network


@pytest.fixture
def account_keys():
    return {
        'private_key': test_util.vector_path('rsa2048_key.pem'),
        'public_key': test_util.vector_path('rsa2048_pub.pem'),
    }
