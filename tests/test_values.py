import pytest

import wick
from wick import values


def test_numbers():
    assert values.coerce('42') == 42
    assert values.coerce('-7') == -7
    assert values.coerce('2.5') == 2.5
    assert isinstance(values.coerce('42'), int)
    assert isinstance(values.coerce('1e3'), float)


def test_non_finite_stays_string():
    assert values.coerce('nan') == 'nan'
    assert values.coerce('inf') == 'inf'


def test_booleans():
    for text in ('t', 'T', 'true', 'True', 'TRUE'):
        assert values.coerce(text) is True

    for text in ('f', 'F', 'false', 'False', 'FALSE'):
        assert values.coerce(text) is False

    # Numbers take precedence.

    assert values.coerce('1') == 1
    assert values.coerce('1') is not True


def test_json():
    assert values.coerce('{"a": [1, 2]}') == {'a': [1, 2]}
    assert values.coerce('[1, "x"]') == [1, 'x']
    assert values.coerce('{not json') == '{not json'


def test_quoted_strings():
    assert values.coerce("'1'") == '1'
    assert values.coerce('"true"') == 'true'
    assert values.coerce('"mismatched\'') == '"mismatched\''


def test_plain_strings():
    assert values.coerce('hello') == 'hello'
    assert values.coerce('') == ''


def test_coerce_list():
    assert values.coerce_list(['1', 'x', 'false']) == [1, 'x', False]


def test_coerce_dict():
    assert values.coerce_dict(['a=1', 'b=two', 'c=x=y']) == {'a': 1, 'b': 'two', 'c': 'x=y'}
    assert values.coerce_dict([]) == {}

    with pytest.raises(wick.ConfigError):
        values.coerce_dict(['novalue'])

    with pytest.raises(wick.ConfigError):
        values.coerce_dict(['=value'])


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
