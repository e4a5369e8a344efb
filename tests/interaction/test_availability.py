"""폼 머신 선택 가능 여부 테스트"""

from uplogdbot.slackbot.interaction.availability import FormState, resolve_machine_availability
from uplogdbot.slackbot.interaction.context import Asset, Machine


def _asset(primary, secondary):
    return Asset(id="by-3", label="by-3", primary_capable=primary, secondary_capable=secondary)


class TestResolveMachineAvailability:
    def test_no_asset(self):
        availability = resolve_machine_availability(None)
        assert availability.state == FormState.NO_ASSET
        assert availability.capability_count == 0
        assert not availability.selectable

    def test_both_capable_defaults_to_all(self):
        availability = resolve_machine_availability(_asset(True, True))
        assert availability.state == FormState.ASSET_SELECTED
        assert availability.capability_count == 2
        assert [o.machine for o in availability.initial] == [Machine.PRIMARY, Machine.SECONDARY]
        assert availability.note is None

    def test_previous_selection_kept(self):
        availability = resolve_machine_availability(_asset(True, True), ["secondary"])
        assert [o.machine for o in availability.initial] == [Machine.SECONDARY]

    def test_invalid_previous_selection_resets(self):
        """새 자산에서 유효하지 않은 이전 선택은 버리고 전체 선택"""
        availability = resolve_machine_availability(_asset(True, False), ["secondary"])
        assert [o.machine for o in availability.initial] == [Machine.PRIMARY]

    def test_primary_only_note(self):
        availability = resolve_machine_availability(_asset(True, False))
        assert availability.note == "crystal not available for this asset."

    def test_secondary_only_note(self):
        availability = resolve_machine_availability(_asset(False, True))
        assert availability.note == "imx8 not available for this asset."

    def test_no_capability(self):
        availability = resolve_machine_availability(_asset(False, False))
        assert availability.capability_count == 0
        assert not availability.selectable
        assert availability.note == "crystal / imx8 not available for this asset."

    def test_custom_labels(self):
        availability = resolve_machine_availability(
            _asset(True, True), primary_label="main", secondary_label="aux"
        )
        assert [o.label for o in availability.options] == ["main", "aux"]
