"""예보 응답 파싱 테스트"""

from datetime import datetime, timezone

import pytest

from uplogdbot.slackbot.config import ForecastConfig
from uplogdbot.slackbot.forecast.fetchers import (
    ForecastFetchError,
    local_date,
    normalize_wave_value,
    parse_sun_times,
    parse_tide_predictions,
    parse_wave_data,
    to_local_clock,
)

WAVE_TEXT = """\
#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE
#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft
2024 05 01 15 30  MM   MM   MM   1.2  14.00  8.1 270     MM    MM  16.4    MM   MM   MM    MM
2024 05 01 15 00  MM   MM   MM   1.1  13.00  8.0 265     MM    MM  16.4    MM   MM   MM    MM
"""


class TestWaveParsing:
    def test_normalize_value(self):
        assert normalize_wave_value("MM") is None
        assert normalize_wave_value("9999") is None
        assert normalize_wave_value("270") == 270
        assert normalize_wave_value("14.00") == 14.0
        assert normalize_wave_value("N/A") == "N/A"

    def test_latest_row(self):
        parsed = parse_wave_data(WAVE_TEXT)

        assert parsed.headers[:5] == ["YY", "MM", "DD", "hh", "mm"]
        assert parsed.units[8] == "m"
        assert parsed.latest.get("WVHT").value == 1.2
        assert parsed.latest.get("MWD").value == 270
        assert parsed.latest.get("WDIR").value is None
        assert parsed.latest.timestamp == "2024-05-01T15:30:00Z"

    def test_too_short(self):
        assert parse_wave_data("#YY MM\n#yr mo") is None
        assert parse_wave_data(None) is None

    def test_missing_units_line(self):
        assert parse_wave_data("#YY MM\n2024 05\n2024 04") is None


class TestTideParsing:
    def test_predictions(self):
        predictions = parse_tide_predictions({"predictions": [
            {"t": "2024-05-01 05:12", "v": "4.871", "type": "H"},
            {"t": "2024-05-01 11:40", "v": "-0.2", "type": "L"},
        ]})

        assert [p.type for p in predictions] == ["High", "Low"]
        assert predictions[0].height_ft == pytest.approx(4.871)
        assert predictions[1].time == "2024-05-01 11:40"

    def test_unexpected_shape(self):
        with pytest.raises(ForecastFetchError):
            parse_tide_predictions({"error": {"message": "bad station"}})


class TestSunParsing:
    def test_converts_to_local(self):
        settings = ForecastConfig()
        sun = parse_sun_times(
            {
                "status": "OK",
                "results": {
                    "sunrise": "2024-05-01T12:58:00+00:00",
                    "sunset": "2024-05-02T02:38:00+00:00",
                    "solar_noon": "2024-05-01T19:48:00+00:00",
                    "day_length": 49200,
                },
            },
            date="2024-05-01",
            settings=settings,
        )

        assert sun.sunrise_local == "2024-05-01 05:58"
        assert sun.sunset_local == "2024-05-01 19:38"
        assert sun.day_length_seconds == 49200

    def test_error_status(self):
        with pytest.raises(ForecastFetchError, match="INVALID_DATE"):
            parse_sun_times({"status": "INVALID_DATE"}, date="x", settings=ForecastConfig())


class TestTimeHelpers:
    def test_to_local_clock_invalid(self):
        assert to_local_clock("not a time", "America/Los_Angeles") is None
        assert to_local_clock(None, "America/Los_Angeles") is None

    def test_local_date_crosses_midnight(self):
        now = datetime(2024, 5, 2, 3, 0, tzinfo=timezone.utc)
        assert local_date("America/Los_Angeles", now).strftime("%Y%m%d") == "20240501"
