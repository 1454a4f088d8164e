import math
from datetime import datetime

import pytest

from urlfile import InvalidSizeError, RequestsTransport, URLFile

from conftest import URL, StubTransport


def test_defaults_span_whole_resource(transport):
    view = URLFile(URL, 100, transport=transport)

    assert (view.start, view.end, view.size, view.true_size) == (0, 100, 100, 100)
    assert len(view) == 100
    assert view.last_modified == 0
    assert isinstance(view.last_modified_date, datetime)
    assert view.transport is transport
    assert transport.call_count == 0


@pytest.mark.parametrize(
    'url, name, type_, relative',
    [
        ('https://example.invalid/dir/sub/archive.zip', 'archive', 'application/zip', 'dir/sub'),
        ('https://example.invalid/notes.txt?x=1', 'notes', 'text/plain', ''),
        ('https://example.invalid/a/README', 'README', '', 'a'),
        ('https://example.invalid/a/my%20file.txt', 'my file', 'text/plain', 'a'),
        ('https://example.invalid/', '', '', ''),
    ],
)
def test_metadata_inferred_from_url(transport, url, name, type_, relative):
    view = URLFile(url, 10, transport=transport)

    assert view.name == name
    assert view.type == type_
    assert view.webkit_relative_path == relative


def test_explicit_metadata_wins(transport):
    when = datetime(2024, 5, 1)
    view = URLFile(
        'https://example.invalid/x/archive.zip',
        10,
        type='',
        name='custom',
        last_modified_date=when,
        last_modified=1714521600000,
        webkit_relative_path='elsewhere',
        transport=transport,
    )

    assert view.type == ''
    assert view.name == 'custom'
    assert view.last_modified_date is when
    assert view.last_modified == 1714521600000
    assert view.webkit_relative_path == 'elsewhere'


@pytest.mark.parametrize('size', [None, math.nan, math.inf, 'abc', '10', -1, True, 1.5])
def test_unusable_size_raises(transport, size):
    with pytest.raises(InvalidSizeError):
        URLFile(URL, size, transport=transport)


def test_invalid_size_is_a_value_error(transport):
    with pytest.raises(ValueError):
        URLFile(URL, None, transport=transport)


def test_integral_float_size_is_accepted(transport):
    view = URLFile(URL, 10.0, transport=transport)

    assert view.size == 10
    assert isinstance(view.size, int)


@pytest.mark.parametrize(
    'kwargs',
    [
        {'start': 5, 'end': 10},  # 5 bytes for a 10 byte view
        {'start': 95, 'end': 105, 'true_size': 100},
        {'true_size': 5},
    ],
)
def test_inconsistent_window_raises(transport, kwargs):
    with pytest.raises(InvalidSizeError):
        URLFile(URL, 10, transport=transport, **kwargs)


def test_window_within_resource(transport):
    view = URLFile(URL, 10, true_size=100, start=90, end=100, transport=transport)

    assert (view.start, view.end, view.true_size) == (90, 100, 100)


def test_rejects_non_http_url(transport):
    with pytest.raises(ValueError):
        URLFile('ftp://example.invalid/file.zip', 10, transport=transport)


def test_default_transport_is_requests():
    view = URLFile(URL, 10)

    assert isinstance(view.transport, RequestsTransport)
    view.transport.close()


def test_size_is_validated_before_url(transport):
    with pytest.raises(InvalidSizeError):
        URLFile('not a url', None, transport=transport)


def test_omitted_size_raises(transport):
    with pytest.raises(InvalidSizeError):
        URLFile(URL, transport=transport)
