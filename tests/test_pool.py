import pytest
import threading
import time

import wick
from wick import pool
from wick.identity import ClientIdentity

from conftest import FakeSession


def counting_connector(fail=()):
    """ Return a connector that fails on the attempt numbers in *fail*, and
        the list of sessions it opened.
    """

    opened = list()
    lock = threading.Lock()
    attempts = [0]

    def connector(identity, keepalive, negotiated):
        with lock:
            attempts[0] += 1
            attempt = attempts[0]

        if attempt in fail:
            raise wick.ConnectError('connection %d refused' % (attempt))

        session = FakeSession(attempt)
        with lock:
            opened.append(session)
        return session

    return connector, opened


def test_all_succeed():
    connector, opened = counting_connector()

    sessions = pool.establish(ClientIdentity(), 5, 2, connector=connector)

    assert len(sessions) == 5
    assert len(opened) == 5
    assert not any(session.closed for session in sessions)


def test_partial_failure_closes_everything():
    connector, opened = counting_connector(fail=(2, 4))

    with pytest.raises(wick.AggregateError) as caught:
        pool.establish(ClientIdentity(), 5, 2, connector=connector)

    error = caught.value
    lines = str(error).split('\n')

    assert lines[0] == 'got error[s]:'
    assert len([line for line in lines if line.startswith('- ')]) == 2
    assert len(error.errors) == 2

    assert len(opened) == 3
    assert all(session.closed for session in opened)


def test_failures_do_not_cancel_siblings():

    attempts = list()

    def connector(identity, keepalive, negotiated):
        attempts.append(keepalive)
        raise wick.ConnectError('nope')

    with pytest.raises(wick.AggregateError) as caught:
        pool.establish(ClientIdentity(), 4, 4, keepalive=3, connector=connector)

    assert len(attempts) == 4
    assert attempts == [3, 3, 3, 3]
    assert len(caught.value.errors) == 4


def test_concurrency_bound():

    active = [0]
    peak = [0]
    lock = threading.Lock()

    def connector(identity, keepalive, negotiated):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])

        time.sleep(0.05)

        with lock:
            active[0] -= 1

        return FakeSession(0)

    sessions = pool.establish(ClientIdentity(), 6, 2, connector=connector)

    assert len(sessions) == 6
    assert peak[0] <= 2


def test_invalid_counts():
    connector, opened = counting_connector()

    with pytest.raises(wick.ConfigError):
        pool.establish(ClientIdentity(), 0, 1, connector=connector)

    with pytest.raises(wick.ConfigError):
        pool.establish(ClientIdentity(), 1, 0, connector=connector)

    with pytest.raises(wick.ConfigError):
        pool.establish(ClientIdentity(), 1, 1, keepalive=-1, connector=connector)

    assert opened == []


def test_config_errors_before_connecting():
    connector, opened = counting_connector()

    with pytest.raises(wick.errors.KeyLengthError):
        pool.establish(ClientIdentity(private_key='ab' * 10), 3, 3, connector=connector)

    with pytest.raises(wick.ConfigError):
        pool.establish(ClientIdentity(url='http://localhost:8080/ws'), 3, 3, connector=connector)

    assert opened == []


def test_connector_sees_normalized_url():

    urls = list()

    def connector(identity, keepalive, negotiated):
        urls.append(identity.url)
        return FakeSession(1)

    client = ClientIdentity(url='rs://localhost:8080')
    pool.establish(client, 1, 1, connector=connector)

    assert urls == ['tcp://localhost:8080']
    assert client.url == 'rs://localhost:8080'


def test_negotiated_once():

    seed = '9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60'
    received = list()

    def connector(identity, keepalive, negotiated):
        received.append(negotiated)
        return FakeSession(len(received))

    pool.establish(ClientIdentity(private_key=seed), 3, 3, connector=connector)

    details, variant = received[0]
    assert variant.method == 'cryptosign'
    assert details['authextra'] == {'pubkey': variant.public_key}
    assert all(entry[1] is variant for entry in received)


def test_normalize_url():
    assert pool.normalize_url('rs://localhost:8080') == 'tcp://localhost:8080'
    assert pool.normalize_url('rss://example.com:443') == 'tcps://example.com:443'
    assert pool.normalize_url('ws://localhost:8080/ws') == 'ws://localhost:8080/ws'
    assert pool.normalize_url('wss://example.com/ws?x=1') == 'wss://example.com/ws?x=1'
    assert pool.normalize_url('tcp://localhost:8080') == 'tcp://localhost:8080'

    # Only the scheme is rewritten, even when the rest looks wrong.

    assert pool.normalize_url('rs://localhost:8080/ws') == 'tcp://localhost:8080/ws'


def test_normalize_url_rejects():

    for url in ('http://localhost', 'localhost:8080', 'wsx://localhost', 'rsocket://x'):
        with pytest.raises(wick.ConfigError):
            pool.normalize_url(url)


def test_close_sessions():
    sessions = [FakeSession(1), FakeSession(2, close_error=wick.OperationError('stuck')), FakeSession(3)]

    pool.close_sessions(sessions)

    assert all(session.closed for session in sessions)
    pool.close_sessions([])


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
