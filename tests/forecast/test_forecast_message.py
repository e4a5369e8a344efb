"""예보 메시지 렌더링 테스트"""

from datetime import datetime, timezone

from uplogdbot.slackbot.forecast.collector import Forecast, ForecastPart
from uplogdbot.slackbot.forecast.fetchers import SunTimes, TidePrediction, parse_wave_data
from uplogdbot.slackbot.presentation.forecast import (
    build_forecast_message,
    build_temps_field,
    build_weather_summary,
    build_wind_field,
    degrees_to_cardinal,
    format_clock,
    format_daylight,
    format_tides,
    format_waves,
    wind_speed_kts,
)

NOW = datetime(2024, 5, 1, 15, 0, tzinfo=timezone.utc)

WEATHER = ForecastPart(success=True, data={
    "properties": {
        "periods": [
            {
                "temperature": 68,
                "temperatureUnit": "F",
                "windSpeed": "10 to 15 mph",
                "windDirection": "W",
                "detailedForecast": "Sunny, with a high near 68. West wind 10 to 15 mph.",
            },
            {"temperature": 58, "temperatureUnit": "F"},
        ]
    }
})

WAVE_TEXT = """\
#YY  MM DD hh mm WVHT   DPD MWD
#yr  mo dy hr mn    m   sec degT
2024 05 01 15 30  1.2  14.00 270
"""


def _tide(time, height, kind):
    return TidePrediction(time=time, height_ft=height, type=kind)


class TestConversions:
    def test_wind_speed_range(self):
        assert wind_speed_kts("10 to 15 mph") == "9 - 13 kts"

    def test_wind_speed_single(self):
        assert wind_speed_kts("5 mph") == "4 kts"

    def test_wind_speed_missing(self):
        assert wind_speed_kts("") is None
        assert wind_speed_kts("calm") is None

    def test_cardinal(self):
        assert degrees_to_cardinal(270) == "W"
        assert degrees_to_cardinal(350) == "N"
        assert degrees_to_cardinal(None) is None

    def test_format_clock(self):
        assert format_clock("2024-05-01 05:12") == "5:12 AM"
        assert format_clock("2024-05-01 17:05") == "5:05 PM"
        assert format_clock("2024-05-01 00:30") == "12:30 AM"
        assert format_clock(None) == "N/A"


class TestWeather:
    def test_summary_converted_to_knots(self):
        assert build_weather_summary(WEATHER) == "Sunny, with a high near 68. West wind 9 - 13 kts."

    def test_summary_appendix_when_speed_not_in_text(self):
        weather = ForecastPart(success=True, data={"properties": {"periods": [
            {"windSpeed": "5 mph", "windDirection": "NW", "shortForecast": "Patchy fog"},
        ]}})
        assert build_weather_summary(weather) == "Patchy fog (4 kts NW ↖️)"

    def test_unavailable(self):
        assert build_weather_summary(ForecastPart(success=False)) == "Weather unavailable."

    def test_temps_and_winds(self):
        assert build_temps_field(WEATHER) == "🌡 *Temps:*\n68° F High\n58° F Low"
        assert build_wind_field(WEATHER) == "💨 *Winds:*\n9 - 13 kts W ⬅️"
        assert build_wind_field(ForecastPart(success=False)) == "💨 *Winds:*\nN/A"


class TestWavesDaylightTides:
    def test_waves(self):
        waves = format_waves(ForecastPart(success=True, data=parse_wave_data(WAVE_TEXT)))
        assert waves == {"height": "3.9 ft", "period": "14 sec", "direction": "270° W ⬅️"}

    def test_waves_unavailable(self):
        assert format_waves(ForecastPart(success=False))["height"] == "N/A"

    def test_daylight(self):
        sun = SunTimes(date="2024-05-01", lat="0", lng="0", timezone="America/Los_Angeles",
                       sunrise_local="2024-05-01 05:58", sunset_local="2024-05-01 19:38")
        assert format_daylight(ForecastPart(success=True, data=sun)) == "Rises @ 5:58 AM\nSets @ 7:38 PM"
        assert format_daylight(ForecastPart(success=False)) == "Rises @ N/A\nSets @ N/A"

    def test_tides_capped_at_four(self):
        highs = [_tide(f"2024-05-01 0{i}:00", 4.0 + i, "High") for i in range(6)]
        tides = format_tides(ForecastPart(success=True, data=highs + [_tide("2024-05-01 12:00", -0.25, "Low")]))

        assert tides["high"].count("@") == 4
        assert tides["high"].startswith("12:00 AM @ 4.000 ft \n1:00 AM @ 5.000 ft")
        assert tides["low"] == "12:00 PM @ -0.250 ft"

    def test_tides_missing(self):
        assert format_tides(ForecastPart(success=False)) == {"high": "No tide data.", "low": "No tide data."}

    def test_no_lows(self):
        tides = format_tides(ForecastPart(success=True, data=[_tide("2024-05-01 05:00", 5.0, "High")]))
        assert tides["low"] == "None"


class TestBuildForecastMessage:
    def test_structure(self):
        forecast = Forecast(weather=WEATHER)
        message = build_forecast_message(forecast, now=NOW)

        assert message.text == "San Diego forecast"
        assert message.blocks[0]["text"]["text"] == "San Diego, CA || May 01, 2024"
        assert [b["type"] for b in message.blocks] == [
            "header", "rich_text", "divider", "section", "section", "section",
        ]

    def test_all_parts_failed_still_renders(self):
        message = build_forecast_message(Forecast(), now=NOW)
        fields = [f["text"] for b in message.blocks if b["type"] == "section" for f in b["fields"]]

        assert "🌊 *Waves:*\nHeight: N/A\nPeriod: N/A\nDirection: N/A" in fields
        assert "*High:*\nNo tide data." in fields
