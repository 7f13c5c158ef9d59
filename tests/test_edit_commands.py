from route_core.model.edit_commands import ReplaceRangeCommand
from route_core.model.track_sequence import RangeEdit, positions, rebuild_derived_fields

TRACK = rebuild_derived_fields([(float(i), 0.0, 0.0) for i in range(5)])


def test_replace_range_command_applies_and_reverts():
    command = ReplaceRangeCommand(TRACK, RangeEdit(1, 3, ((2.0, 2.0, 0.0),)))

    applied = command.apply()
    reverted = command.revert()

    assert positions(applied) == [
        (0.0, 0.0, 0.0),
        (2.0, 2.0, 0.0),
        (4.0, 0.0, 0.0),
    ]
    assert command.inverse == RangeEdit(1, 1, tuple(positions(TRACK[1:4])))
    assert reverted == TRACK


def test_apply_is_repeatable():
    command = ReplaceRangeCommand(TRACK, RangeEdit(0, -1, ((-1.0, 0.0, 0.0),)))

    assert command.apply() == command.apply()
    assert len(command.apply()) == len(TRACK) + 1
