import logging

from scout_cli.logging_config import SensitiveDataFilter


def make_record(msg, args=None):
    return logging.LogRecord("scout", logging.INFO, __file__, 1, msg, args, None)


def test_api_key_is_masked_in_message_and_args():
    secret_filter = SensitiveDataFilter({"STEAM_API_KEY": "ABC123"})

    record = make_record("GET ...?key=ABC123&steamids=1")
    assert secret_filter.filter(record) is True
    assert record.msg == "GET ...?key=***STEAM_API_KEY***&steamids=1"

    record = make_record("url %s", ("key=ABC123",))
    secret_filter.filter(record)
    assert record.args == ("key=***STEAM_API_KEY***",)


def test_empty_secret_masks_nothing():
    secret_filter = SensitiveDataFilter({"STEAM_API_KEY": ""})
    record = make_record("nothing to hide")

    secret_filter.filter(record)
    assert record.msg == "nothing to hide"
