from datetime import datetime, timezone

from smarthome_hub.utils.time import epoch_ms, utc_now


def test_utc_now_is_aware():
    assert utc_now().tzinfo is timezone.utc


def test_epoch_ms_for_aware_datetime():
    assert epoch_ms(datetime(2024, 1, 1, tzinfo=timezone.utc)) == 1704067200000


def test_epoch_ms_treats_naive_datetime_as_utc():
    assert epoch_ms(datetime(2024, 1, 1, 0, 0, 0, 500000)) == 1704067200500


def test_epoch_ms_defaults_to_now():
    before = epoch_ms(utc_now())
    now = epoch_ms()
    assert before <= now <= before + 5000
