import logging

from common.logging_config import RequestIDFilter, clear_request_id, get_request_id, set_request_id


def make_record():
    return logging.LogRecord('jobs', logging.INFO, __file__, 1, 'message', None, None)


def test_filter_uses_current_request_id():
    set_request_id('abc12345')
    try:
        record = make_record()
        assert RequestIDFilter().filter(record) is True
        assert record.request_id == 'abc12345'
    finally:
        clear_request_id()


def test_filter_without_request():
    clear_request_id()
    record = make_record()
    RequestIDFilter().filter(record)
    assert record.request_id == 'N/A'
    assert get_request_id() is None


def test_clear_is_idempotent():
    clear_request_id()
    clear_request_id()
    assert get_request_id() is None
