"""응답 본문 요약 테스트"""

from uplogdbot.slackbot.remote.summary import MAX_SUMMARY_LENGTH, summarize_response_data, truncate


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("ok") == "ok"

    def test_long_text(self):
        result = truncate("a" * 250)
        assert len(result) == MAX_SUMMARY_LENGTH
        assert result.endswith("...")
        assert result[:197] == "a" * 197

    def test_exact_limit_unchanged(self):
        assert truncate("b" * 200) == "b" * 200


class TestSummarizeResponseData:
    def test_none(self):
        assert summarize_response_data(None) is None

    def test_string(self):
        assert summarize_response_data("started") == "started"

    def test_primary_field_priority(self):
        assert summarize_response_data({"status": "ok", "message": "done"}) == "done"
        assert summarize_response_data({"detail": "missing", "description": "x"}) == "missing"

    def test_non_string_primary_falls_back_to_json(self):
        assert summarize_response_data({"status": 1, "pid": 42}) == '{"status":1,"pid":42}'

    def test_list(self):
        assert summarize_response_data([1, 2]) == "[1,2]"

    def test_number(self):
        assert summarize_response_data(200) == "200"

    def test_long_object_truncated(self):
        result = summarize_response_data({"items": ["x" * 50] * 10})
        assert len(result) == MAX_SUMMARY_LENGTH
        assert result.endswith("...")
