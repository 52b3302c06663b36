import json
import wick


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_wick_encode_and_decode():
    encode_and_decode(wick.json.dumps, wick.json.loads)


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {'one': 1, 'two': 2.5}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = dumps(input_dictionary)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    # It won't do to compare the encoded JSON against a pre-set notion of
    # what the encoded output should look like, as there is variance in
    # the handling of whitespace between the different JSON libraries.

    decoded = loads(encoded)
    assert decoded == input_dictionary


def test_pretty():
    # The human-readable forms are stable regardless of the library.

    assert wick.json.pretty({'b': [1, 2], 'a': None}) == '{\n  "a": null,\n  "b": [\n    1,\n    2\n  ]\n}'
    assert wick.json.pretty([]) == '[]'
    assert wick.json.pretty({}) == '{}'


def test_compact():
    assert wick.json.compact({'b': [1, 2], 'a': 'x'}) == '{"a":"x","b":[1,2]}'
    assert wick.json.compact(['é']) == '["é"]'


def test_bytes_as_base64():
    assert wick.json.compact([b'\x00\x01']) == '["AAE="]'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
