"""타깃 해석 테스트"""

from uplogdbot.slackbot.interaction.context import Asset, Machine, MachineTarget
from uplogdbot.slackbot.interaction.targets import (
    base_asset_id,
    resolve_machine_targets,
    secondary_asset_id,
)


def _asset(asset_id="sg-101", primary=True, secondary=True):
    return Asset(id=asset_id, label=asset_id, primary_capable=primary, secondary_capable=secondary)


class TestAssetIds:
    def test_base_strips_suffix(self):
        assert base_asset_id("sg-101-secondary") == "sg-101"

    def test_base_keeps_plain_id(self):
        assert base_asset_id(" sg-101 ") == "sg-101"

    def test_base_none(self):
        assert base_asset_id(None) == ""

    def test_secondary_not_doubled(self):
        assert secondary_asset_id("sg-101-secondary") == "sg-101-secondary"
        assert secondary_asset_id("sg-101") == "sg-101-secondary"


class TestResolveMachineTargets:
    """머신 플래그 × 자산 능력 교차"""

    def test_no_asset(self):
        assert resolve_machine_targets(None, True, True) == []

    def test_both_requested_and_capable(self):
        targets = resolve_machine_targets(_asset(), True, True)
        assert targets == [
            MachineTarget("sg-101", Machine.PRIMARY),
            MachineTarget("sg-101-secondary", Machine.SECONDARY),
        ]

    def test_only_primary_requested(self):
        targets = resolve_machine_targets(_asset(), True, False)
        assert targets == [MachineTarget("sg-101", Machine.PRIMARY)]

    def test_requested_but_not_capable_falls_back(self):
        """요청했지만 능력이 없으면 machine=none 기본 타깃 하나"""
        asset = _asset(primary=False, secondary=False)
        targets = resolve_machine_targets(asset, True, True)
        assert targets == [MachineTarget("sg-101", Machine.NONE)]

    def test_nothing_requested_falls_back(self):
        targets = resolve_machine_targets(_asset(), False, False)
        assert targets == [MachineTarget("sg-101", Machine.NONE)]

    def test_selected_secondary_id_is_normalized(self):
        asset = _asset("cr-7-secondary", primary=True, secondary=True)
        targets = resolve_machine_targets(asset, True, True)
        assert [t.asset_id for t in targets] == ["cr-7", "cr-7-secondary"]

    def test_empty_id_yields_nothing(self):
        asset = _asset("", primary=True, secondary=True)
        assert resolve_machine_targets(asset, True, True) == []

    def test_order_is_primary_then_secondary(self):
        targets = resolve_machine_targets(_asset(), True, True)
        assert [t.machine for t in targets] == [Machine.PRIMARY, Machine.SECONDARY]
